from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ACTIVE = "active"

# Column order of the sheet range A2:E
COLUMNS = ["address", "owner", "addedBy", "addedAt", "status"]


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ==== Records ====
class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: str
    owner: str
    added_by: str = Field(alias="addedBy")
    added_at: str = Field(default_factory=utc_now_iso, alias="addedAt")
    status: str = ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @classmethod
    def from_row(cls, row: list) -> "Record":
        # Sheets drops trailing empty cells, so rows can be short
        cells = list(row) + [""] * (len(COLUMNS) - len(row))
        return cls(
            address=cells[0] or "",
            owner=cells[1] or "",
            added_by=cells[2] or "",
            added_at=cells[3] or utc_now_iso(),
            status=cells[4] or ACTIVE,
        )

    def to_row(self) -> list:
        return [self.address, self.owner, self.added_by, self.added_at, self.status]

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


# ==== Request bodies ====
class AddRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    address: Optional[str] = Field(default=None, validation_alias=AliasChoices("address", "ip"))
    owner: Optional[str] = None
    added_by: Optional[str] = Field(default=None, validation_alias=AliasChoices("addedBy", "added_by"))


class RemoveRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    address: Optional[str] = Field(default=None, validation_alias=AliasChoices("address", "ip"))


# ==== Service results ====
class ResultKind(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    STORE_UNAVAILABLE = "store_unavailable"
    SAVE_FAILED = "save_failed"


class WhitelistResult(BaseModel):
    kind: ResultKind
    server: Optional[Record] = None
    servers: List[Record] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind == ResultKind.OK
