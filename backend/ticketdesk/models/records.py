"""Records persisted by the file record store."""

import enum
from datetime import datetime, timezone
from typing import ClassVar, FrozenSet, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class TicketStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "inProgress"
    RESOLVED = "resolved"
    CLOSED = "closed"

    @property
    def code(self) -> int:
        return _STATUS_CODES.index(self)

    @classmethod
    def from_code(cls, code: int) -> "TicketStatus":
        try:
            return _STATUS_CODES[code]
        except IndexError:
            raise ValueError(f"Unknown ticket status code: {code}")

    @classmethod
    def parse(cls, value) -> "TicketStatus":
        """Accept a member, a stored name ("inProgress", "IN_PROGRESS") or a legacy integer code."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.from_code(value)
        if isinstance(value, str):
            key = value.replace("_", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        raise ValueError(f"Unknown ticket status: {value!r}")


# Order is the persisted integer encoding: New=0, InProgress=1, Resolved=2, Closed=3
_STATUS_CODES = (
    TicketStatus.NEW,
    TicketStatus.IN_PROGRESS,
    TicketStatus.RESOLVED,
    TicketStatus.CLOSED,
)


class Record(BaseModel):
    """Base for records kept by FileRecordStore.

    ``id``, ``created_at`` and ``updated_at`` are owned by the store.
    Every other field is overwritten on update.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    IMMUTABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"id", "created_at", "updated_at"})

    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def mutable_fields(cls) -> List[str]:
        return [name for name in cls.model_fields if name not in cls.IMMUTABLE_FIELDS]


class Ticket(Record):
    name: str
    email: str
    description: str
    summary: str = ""
    image_url: str = ""
    status: TicketStatus = TicketStatus.NEW
    resolution: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return TicketStatus.parse(v)

    @field_validator("image_url", "summary", "resolution", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return "" if v is None else v
