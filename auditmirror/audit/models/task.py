"""AuditTask model: one unit of work for the dispatch queue."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class AuditAction(StrEnum):
    """Standard mutation labels. Callers may pass any other string."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditTask(BaseModel):
    """A request to mirror one record mutation into the audit store.

    When ``payload`` is None the worker snapshots the live row from the
    primary store instead of projecting a caller-supplied record.
    :meth:`AuditService.log` stores a deep copy of the record, so the
    entry reflects the record as it was when it was logged.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    table_name: str = Field(..., min_length=1, description="Source table name")
    record_id: Any = Field(default=None, description="Opaque record identifier")
    action: str = Field(..., description="Mutation label")
    actor: str | None = Field(default=None, description="Who made the change")
    payload: Any = Field(
        default=None, description="Auditable record, or None to snapshot the live row"
    )
    submitted_at: datetime = Field(
        default_factory=utc_now, description="Submission time"
    )

    @property
    def is_snapshot(self) -> bool:
        """True when the row must be read from the primary store."""
        return self.payload is None
