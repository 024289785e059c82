"""Tamper-evident audit trail.

Every entry's hash covers the previous entry's hash, so altering or
removing any historical entry is detectable by recomputing the chain.
"""

from garrison.audit.chain import GENESIS_HASH, canonical_payload, chain_entry, compute_hash
from garrison.audit.models import (
    AuditDraft,
    AuditLogEntry,
    AuditLogFilter,
    ChainVerification,
)
from garrison.audit.store import AuditStore
from garrison.audit.verifier import AuditChainVerifier, verify_entries
from garrison.audit.writer import AuditWriter

__all__ = [
    "GENESIS_HASH",
    "AuditChainVerifier",
    "AuditDraft",
    "AuditLogEntry",
    "AuditLogFilter",
    "AuditStore",
    "AuditWriter",
    "ChainVerification",
    "canonical_payload",
    "chain_entry",
    "compute_hash",
    "verify_entries",
]
