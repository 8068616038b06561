import json
from pathlib import Path

from whitelist.models import utc_now_iso

CHECK_LOG_LIMIT = 1000


def log_check(path: Path, address: str, result: bool, limit: int = CHECK_LOG_LIMIT) -> dict:
    """Append a check entry to the JSON log file, keeping only the newest `limit` entries.

    Read-modify-write with no locking: concurrent checks can drop an entry.
    """
    entry = {
        "address": address,
        "action": "check",
        "result": result,
        "timestamp": utc_now_iso(),
    }
    data = read_log(path)

    data.append(entry)
    if len(data) > limit:
        data = data[-limit:]

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return entry


def read_log(path: Path) -> list:
    if not path.exists():
        return []
    with open(path, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            return []
    return data if isinstance(data, list) else []
