# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from main import app
from whitelist.store import SheetsStore, get_store

SHEET_NAME = "Whitelist Server"


class FakeRequest:
    def __init__(self, action):
        self.action = action

    def execute(self, num_retries=0):
        return self.action()


class FakeSheetsService:
    """In-memory stand-in for the `spreadsheets().values()` resource of the Sheets v4 client."""

    def __init__(self, rows=None):
        self.rows = [list(r) for r in (rows or [])]
        self.fail_reads = False
        self.fail_writes = False
        self.calls = []

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def get(self, spreadsheetId, range):
        self.calls.append(("get", range))

        def action():
            if self.fail_reads:
                raise OSError("timed out")
            # the API omits "values" for an empty range
            return {"values": [list(r) for r in self.rows]} if self.rows else {"range": range}
        return FakeRequest(action)

    def clear(self, spreadsheetId, range, body=None):
        self.calls.append(("clear", range))

        def action():
            if self.fail_writes:
                raise OSError("connection reset")
            self.rows = []
            return {"clearedRange": range}
        return FakeRequest(action)

    def update(self, spreadsheetId, range, valueInputOption, body):
        self.calls.append(("update", range, valueInputOption))

        def action():
            self.rows = [list(r) for r in body["values"]]
            return {"updatedRows": len(self.rows)}
        return FakeRequest(action)


@pytest.fixture
def sheets():
    return FakeSheetsService()


@pytest.fixture
def store(sheets):
    return SheetsStore(sheets, "test-spreadsheet", SHEET_NAME)


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "data" / "server_logs.json"


@pytest.fixture
def test_settings(log_path):
    return Settings(check_log_path=log_path, check_log_limit=1000)


@pytest.fixture
def client(store, test_settings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
