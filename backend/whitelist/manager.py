import logging
from pathlib import Path
from typing import List, Optional

from utils.logger import log_check, CHECK_LOG_LIMIT
from whitelist.models import Record, ResultKind, WhitelistResult
from whitelist.store import SheetsStore, StoreUnavailableError

logger = logging.getLogger(__name__)


# === Generic Helpers ===
def _find(records: List[Record], address: str, active_only: bool = False) -> Optional[int]:
    for index, record in enumerate(records):
        if record.address == address and (record.is_active or not active_only):
            return index
    return None


def _missing(**fields) -> List[str]:
    return [name for name, value in fields.items() if not value]


# === Whitelist Functions ===
def check_ip(store: SheetsStore, address: str, log_path: Path,
             log_limit: int = CHECK_LOG_LIMIT) -> WhitelistResult:
    logger.info(f"[API] Whitelist check request for: {address}")
    try:
        records = store.read_table()
    except StoreUnavailableError:
        return WhitelistResult(kind=ResultKind.STORE_UNAVAILABLE)

    index = _find(records, address, active_only=True)
    server = records[index] if index is not None else None
    logger.info(f"[API] Result: {'WHITELISTED' if server else 'NOT WHITELISTED'}")

    log_check(log_path, address, server is not None, limit=log_limit)
    return WhitelistResult(kind=ResultKind.OK if server else ResultKind.NOT_FOUND, server=server)


def list_ips(store: SheetsStore) -> WhitelistResult:
    try:
        records = store.read_table()
    except StoreUnavailableError:
        return WhitelistResult(kind=ResultKind.STORE_UNAVAILABLE)
    return WhitelistResult(kind=ResultKind.OK, servers=[r for r in records if r.is_active])


def add_ip(store: SheetsStore, address: Optional[str], owner: Optional[str],
           added_by: Optional[str]) -> WhitelistResult:
    missing = _missing(address=address, owner=owner, addedBy=added_by)
    if missing:
        return WhitelistResult(kind=ResultKind.INVALID, missing=missing)

    logger.info(f"[API] Add whitelist request: {address} by {added_by}")
    try:
        records = store.read_table()
    except StoreUnavailableError:
        return WhitelistResult(kind=ResultKind.STORE_UNAVAILABLE)

    # Addresses are unique across active and inactive records
    existing = _find(records, address)
    if existing is not None:
        return WhitelistResult(kind=ResultKind.CONFLICT, server=records[existing])

    server = Record(address=address, owner=owner, added_by=added_by)
    records.append(server)
    if not store.write_table(records):
        return WhitelistResult(kind=ResultKind.SAVE_FAILED, server=server)

    logger.info(f"[API] Server {address} added successfully")
    return WhitelistResult(kind=ResultKind.OK, server=server)


def remove_ip(store: SheetsStore, address: Optional[str]) -> WhitelistResult:
    if not address:
        return WhitelistResult(kind=ResultKind.INVALID, missing=["address"])

    logger.info(f"[API] Remove whitelist request: {address}")
    try:
        records = store.read_table()
    except StoreUnavailableError:
        return WhitelistResult(kind=ResultKind.STORE_UNAVAILABLE)

    index = _find(records, address)
    if index is None:
        return WhitelistResult(kind=ResultKind.NOT_FOUND)

    server = records.pop(index)
    if not store.write_table(records):
        return WhitelistResult(kind=ResultKind.SAVE_FAILED, server=server)

    logger.info(f"[API] Server {address} removed successfully")
    return WhitelistResult(kind=ResultKind.OK, server=server)
