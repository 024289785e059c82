"""Audit log entry models."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision.

    Entry timestamps are hashed at millisecond precision, so they are
    created that way to round-trip through storage unchanged.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


class AuditDraft(BaseModel):
    """Caller-supplied fields of an audit entry.

    The timestamp, sequence and hashes are assigned when the draft is
    chained onto the log.
    """

    model_config = ConfigDict(frozen=True)

    actor_id: str = Field(..., min_length=1, description="User who performed the action")
    action: str = Field(..., min_length=1, description="Operation name, e.g. user_login")
    entity: str = Field(..., min_length=1, description="Affected object type, e.g. courses")
    entity_id: str | None = Field(default=None, description="Affected object id")
    ip: str | None = Field(default=None, description="Originating network address")
    metadata: dict[str, Any] | None = Field(default=None, description="Free-form payload")


class AuditLogEntry(AuditDraft):
    """A chained, immutable audit entry.

    immutable_hash = sha256(previous_hash + canonical_payload(entry)).
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")
    sequence: int = Field(..., ge=1, description="1-based position in the chain")
    ts: datetime = Field(..., description="Server-assigned creation time")
    previous_hash: str = Field(..., description="Hash of the preceding entry or genesis marker")
    immutable_hash: str = Field(..., description="SHA-256 hex digest chaining this entry")

    def to_draft(self) -> AuditDraft:
        """Strip chain fields, leaving the caller-supplied payload."""
        return AuditDraft(
            actor_id=self.actor_id,
            action=self.action,
            entity=self.entity,
            entity_id=self.entity_id,
            ip=self.ip,
            metadata=self.metadata,
        )


class AuditLogFilter(BaseModel):
    """Filters for audit log listings. All set fields must match."""

    actor_id: str | None = None
    action: str | None = None
    entity: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Bounds without an offset are UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    def matches(self, entry: AuditLogEntry) -> bool:
        """Return True if entry satisfies every set filter."""
        if self.actor_id is not None and entry.actor_id != self.actor_id:
            return False
        if self.action is not None and entry.action != self.action:
            return False
        if self.entity is not None and entry.entity != self.entity:
            return False
        if self.start_time is not None and entry.ts < self.start_time:
            return False
        if self.end_time is not None and entry.ts > self.end_time:
            return False
        return True
