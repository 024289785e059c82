"""Audit chain verification.

Walks the chain in ascending sequence order and recomputes every hash.
Verification stops at the first broken entry and reports why it broke.
"""

from collections.abc import Iterable

from garrison.audit.chain import GENESIS_HASH, entry_hash
from garrison.audit.models import AuditLogEntry, ChainVerification
from garrison.audit.store import AuditStore
from garrison.observability.logging import get_logger
from garrison.observability.metrics import AUDIT_CHAIN_LENGTH, AUDIT_VERIFICATIONS

logger = get_logger(__name__)


class ChainWalk:
    """Incremental verification state.

    Feed entries in ascending sequence order; feed returns a failed
    ChainVerification at the first broken entry and None otherwise.
    """

    def __init__(self, genesis_hash: str = GENESIS_HASH) -> None:
        self._expected_sequence = 1
        self._expected_previous = genesis_hash
        self.checked = 0

    def feed(self, entry: AuditLogEntry) -> ChainVerification | None:
        self.checked += 1

        if entry.sequence != self._expected_sequence:
            return self._broken(
                entry,
                "sequence_gap",
                expected=str(self._expected_sequence),
                actual=str(entry.sequence),
            )
        if entry.previous_hash != self._expected_previous:
            return self._broken(
                entry,
                "previous_hash_mismatch",
                expected=self._expected_previous,
                actual=entry.previous_hash,
            )
        recomputed = entry_hash(entry)
        if recomputed != entry.immutable_hash:
            return self._broken(
                entry,
                "hash_mismatch",
                expected=recomputed,
                actual=entry.immutable_hash,
            )

        self._expected_sequence += 1
        self._expected_previous = entry.immutable_hash
        return None

    def result(self) -> ChainVerification:
        """Successful result covering every entry fed so far."""
        return ChainVerification(valid=True, checked=self.checked)

    def _broken(
        self,
        entry: AuditLogEntry,
        reason: str,
        *,
        expected: str,
        actual: str,
    ) -> ChainVerification:
        return ChainVerification(
            valid=False,
            checked=self.checked,
            broken_at=entry.sequence,
            entry_id=entry.id,
            reason=reason,
            expected_hash=expected,
            actual_hash=actual,
        )


def verify_entries(
    entries: Iterable[AuditLogEntry],
    genesis_hash: str = GENESIS_HASH,
) -> ChainVerification:
    """Verify an in-memory sequence of entries, oldest first."""
    walk = ChainWalk(genesis_hash)
    for entry in entries:
        broken = walk.feed(entry)
        if broken is not None:
            return broken
    return walk.result()


class AuditChainVerifier:
    """Verifies the chain held by an AuditStore."""

    def __init__(
        self,
        store: AuditStore,
        *,
        batch_size: int = 500,
        genesis_hash: str = GENESIS_HASH,
    ) -> None:
        self._store = store
        self._batch_size = batch_size
        self._genesis_hash = genesis_hash

    async def verify(self) -> ChainVerification:
        """Stream the whole chain and recompute it.

        Returns:
            ChainVerification describing the first break, or a valid result
        """
        walk = ChainWalk(self._genesis_hash)
        result: ChainVerification | None = None

        async for entry in self._store.iter_chain(batch_size=self._batch_size):
            result = walk.feed(entry)
            if result is not None:
                break

        if result is None:
            result = walk.result()
            logger.info("audit_chain_verified", checked=result.checked)
        else:
            logger.warning(
                "audit_chain_broken",
                checked=result.checked,
                broken_at=result.broken_at,
                entry_id=str(result.entry_id),
                reason=result.reason,
            )

        AUDIT_VERIFICATIONS.labels(outcome="valid" if result.valid else "broken").inc()
        AUDIT_CHAIN_LENGTH.set(result.checked)
        return result
