"""Response models for audit log endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from garrison.api.models.base import CamelModel
from garrison.audit import AuditLogEntry, ChainVerification


class AuditLogResponse(CamelModel):
    """An audit entry as returned by the API."""

    id: UUID
    sequence: int
    actor_id: str
    action: str
    entity: str
    entity_id: str | None
    ip: str | None
    metadata: dict[str, Any] | None
    ts: datetime
    previous_hash: str
    immutable_hash: str

    @classmethod
    def from_entry(cls, entry: AuditLogEntry) -> "AuditLogResponse":
        return cls.model_validate(entry.model_dump())


class AuditLogPageResponse(CamelModel):
    """A page of audit entries, most recent first."""

    items: list[AuditLogResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class ChainVerificationResponse(CamelModel):
    """Outcome of an audit chain verification."""

    valid: bool
    checked: int
    broken_at: int | None
    entry_id: UUID | None
    reason: str | None
    expected_hash: str | None
    actual_hash: str | None

    @classmethod
    def from_result(cls, result: ChainVerification) -> "ChainVerificationResponse":
        return cls.model_validate(result.model_dump())
