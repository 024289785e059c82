"""Hash-chain primitives for the audit log.

Pure functions only: serialization, hashing and chaining a draft onto a
previous entry. Stores call chain_entry while holding their append lock;
the verifier calls canonical_payload and compute_hash to recompute.
"""

import hashlib
import json
from datetime import UTC, datetime
from typing import Any

from garrison.audit.models import AuditDraft, AuditLogEntry, utc_now

GENESIS_HASH = "genesis"


def format_ts(ts: datetime) -> str:
    """Format a timestamp as UTC ISO-8601 with milliseconds and a Z suffix.

    Example: 2025-01-02T03:04:05.678Z
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    ts = ts.astimezone(UTC)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def canonical_payload(draft: AuditDraft, ts: datetime) -> str:
    """Serialize the hashed fields of an entry.

    None-valued optional fields are omitted, keys are sorted at every
    level, separators are compact and non-ASCII text is kept verbatim.
    """
    payload: dict[str, Any] = {
        "actorId": draft.actor_id,
        "action": draft.action,
        "entity": draft.entity,
        "ts": format_ts(ts),
    }
    if draft.entity_id is not None:
        payload["entityId"] = draft.entity_id
    if draft.ip is not None:
        payload["ip"] = draft.ip
    if draft.metadata is not None:
        payload["metadata"] = draft.metadata

    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_hash(previous_hash: str, payload: str) -> str:
    """SHA-256 hex digest of previous_hash concatenated with payload."""
    return hashlib.sha256((previous_hash + payload).encode("utf-8")).hexdigest()


def entry_hash(entry: AuditLogEntry) -> str:
    """Recompute an entry's hash from its stored fields."""
    return compute_hash(entry.previous_hash, canonical_payload(entry, entry.ts))


def chain_entry(
    previous: AuditLogEntry | None,
    draft: AuditDraft,
    ts: datetime | None = None,
    *,
    genesis_hash: str = GENESIS_HASH,
) -> AuditLogEntry:
    """Build the entry that follows previous in the chain.

    Args:
        previous: Current head of the chain, or None for the first entry
        draft: Caller-supplied fields
        ts: Creation time; defaults to now at millisecond precision
        genesis_hash: Previous-hash marker for the first entry

    Returns:
        A new AuditLogEntry with sequence, previous_hash and immutable_hash set
    """
    ts = ts or utc_now()
    previous_hash = previous.immutable_hash if previous else genesis_hash
    sequence = previous.sequence + 1 if previous else 1

    return AuditLogEntry(
        **draft.model_dump(),
        sequence=sequence,
        ts=ts,
        previous_hash=previous_hash,
        immutable_hash=compute_hash(previous_hash, canonical_payload(draft, ts)),
    )
