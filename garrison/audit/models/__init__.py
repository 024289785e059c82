"""Audit domain models.

Contains all Pydantic models for the audit trail:
- AuditDraft for caller-supplied fields
- AuditLogEntry for chained, immutable entries
- AuditLogFilter for listings
- ChainVerification for verification results
"""

from garrison.audit.models.entry import (
    AuditDraft,
    AuditLogEntry,
    AuditLogFilter,
    utc_now,
)
from garrison.audit.models.verification import BreakReason, ChainVerification

__all__ = [
    "AuditDraft",
    "AuditLogEntry",
    "AuditLogFilter",
    "BreakReason",
    "ChainVerification",
    "utc_now",
]
