"""
Google Sheets adapter for the whitelist table.

The sheet is treated as one flat table: every read fetches the whole range and
every write clears the range and rewrites all rows. Between the clear and the
update a concurrent reader sees an empty table.
"""

import json
import logging
from functools import lru_cache
from typing import List

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import HttpRequest

from config import get_settings
from whitelist.models import Record

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Anything the client library or its transport can raise for a failed call
STORE_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError)


class StoreUnavailableError(Exception):
    """The backing sheet could not be read."""


class SheetsStore:
    def __init__(self, service, spreadsheet_id: str, sheet_name: str):
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    @property
    def table_range(self) -> str:
        return f"'{self.sheet_name}'!A2:E"

    @property
    def start_cell(self) -> str:
        return f"'{self.sheet_name}'!A2"

    def _values(self):
        return self.service.spreadsheets().values()

    def read_table(self) -> List[Record]:
        try:
            response = self._values().get(
                spreadsheetId=self.spreadsheet_id,
                range=self.table_range,
            ).execute(num_retries=0)
        except STORE_ERRORS as e:
            logger.error(f"[SHEETS] Error reading whitelist: {e}")
            raise StoreUnavailableError(str(e)) from e

        rows = response.get("values", [])
        return [Record.from_row(row) for row in rows]

    def write_table(self, records: List[Record]) -> bool:
        try:
            self._values().clear(
                spreadsheetId=self.spreadsheet_id,
                range=self.table_range,
                body={},
            ).execute(num_retries=0)

            rows = [record.to_row() for record in records]
            if rows:
                self._values().update(
                    spreadsheetId=self.spreadsheet_id,
                    range=self.start_cell,
                    valueInputOption="RAW",
                    body={"values": rows},
                ).execute(num_retries=0)
        except STORE_ERRORS as e:
            logger.error(f"[SHEETS] Error saving whitelist: {e}")
            return False

        logger.info(f"[SHEETS] Data saved successfully ({len(records)} rows)")
        return True


def make_request_builder(credentials, timeout: float):
    """Request factory giving every request its own `httplib2.Http`, which is not thread-safe."""
    def build_request(http, *args, **kwargs):
        new_http = AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
        return HttpRequest(new_http, *args, **kwargs)
    return build_request


def build_sheets_service(credentials_json: str, timeout: float):
    """Build a Sheets v4 client whose HTTP calls give up after `timeout` seconds."""
    info = json.loads(credentials_json)
    credentials = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    return build(
        "sheets", "v4",
        credentials=credentials,
        requestBuilder=make_request_builder(credentials, timeout),
        cache_discovery=False,
    )


@lru_cache
def get_store() -> SheetsStore:
    settings = get_settings()
    if not settings.google_credentials:
        raise RuntimeError("GOOGLE_CREDENTIALS is not set")
    service = build_sheets_service(settings.google_credentials, settings.sheets_timeout)
    return SheetsStore(service, settings.spreadsheet_id, settings.sheet_name)
