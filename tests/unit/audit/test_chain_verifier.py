"""Tests for audit chain verification."""

from datetime import UTC, datetime, timedelta

import pytest

from garrison.audit.chain import chain_entry
from garrison.audit.models import AuditDraft, AuditLogEntry
from garrison.audit.stores import InMemoryAuditStore
from garrison.audit.verifier import AuditChainVerifier, verify_entries

TS = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)


def build_chain(n: int) -> list[AuditLogEntry]:
    entries: list[AuditLogEntry] = []
    previous = None
    for i in range(n):
        previous = chain_entry(
            previous,
            AuditDraft(actor_id=f"u{i}", action="user_login", entity="users"),
            TS + timedelta(seconds=i),
        )
        entries.append(previous)
    return entries


class TestVerifyEntries:
    def test_empty_chain_is_valid(self) -> None:
        result = verify_entries([])
        assert result.valid is True
        assert result.checked == 0

    def test_intact_chain(self) -> None:
        result = verify_entries(build_chain(5))
        assert result.valid is True
        assert result.checked == 5
        assert result.broken_at is None

    def test_tampered_field_reports_hash_mismatch(self) -> None:
        entries = build_chain(5)
        original = entries[2]
        entries[2] = original.model_copy(update={"action": "user_logout"})

        result = verify_entries(entries)

        assert result.valid is False
        assert result.reason == "hash_mismatch"
        assert result.broken_at == 3
        assert result.entry_id == original.id
        assert result.checked == 3
        assert result.actual_hash == original.immutable_hash
        assert result.expected_hash != original.immutable_hash

    def test_tampered_metadata_detected(self) -> None:
        entries = build_chain(3)
        entries[0] = entries[0].model_copy(update={"metadata": {"injected": True}})

        result = verify_entries(entries)
        assert result.reason == "hash_mismatch"
        assert result.broken_at == 1

    def test_rewritten_hash_breaks_next_link(self) -> None:
        """Recomputing a tampered entry's own hash still breaks its successor."""
        entries = build_chain(4)
        forged = chain_entry(
            entries[0],
            AuditDraft(actor_id="attacker", action="user_login", entity="users"),
            entries[1].ts,
        )
        entries[1] = forged.model_copy(update={"id": entries[1].id})

        result = verify_entries(entries)
        assert result.reason == "previous_hash_mismatch"
        assert result.broken_at == 3

    def test_deleted_entry_reports_sequence_gap(self) -> None:
        entries = build_chain(5)
        del entries[2]

        result = verify_entries(entries)
        assert result.reason == "sequence_gap"
        assert result.broken_at == 4
        assert result.expected_hash == "3"
        assert result.actual_hash == "4"

    def test_fork_detected(self) -> None:
        """Two entries chained from the same head cannot both be in the chain."""
        head = build_chain(1)[0]
        left = chain_entry(head, AuditDraft(actor_id="a", action="x", entity="e"), TS)
        right = chain_entry(head, AuditDraft(actor_id="b", action="y", entity="e"), TS)

        result = verify_entries([head, left, right])
        assert result.valid is False
        assert result.reason in ("sequence_gap", "previous_hash_mismatch")
        assert result.entry_id == right.id

    def test_wrong_genesis(self) -> None:
        result = verify_entries(build_chain(2), genesis_hash="other")
        assert result.reason == "previous_hash_mismatch"
        assert result.broken_at == 1


class TestAuditChainVerifier:
    @pytest.fixture
    def store(self) -> InMemoryAuditStore:
        return InMemoryAuditStore()

    async def test_verifies_store_chain(self, store: InMemoryAuditStore) -> None:
        for i in range(12):
            await store.append(AuditDraft(actor_id=f"u{i}", action="a", entity="e"))

        result = await AuditChainVerifier(store, batch_size=5).verify()
        assert result.valid is True
        assert result.checked == 12

    async def test_detects_tampering_in_store(self, store: InMemoryAuditStore) -> None:
        for i in range(4):
            await store.append(AuditDraft(actor_id=f"u{i}", action="a", entity="e"))

        # Simulate a direct edit of the backing storage
        victim = store._entries[1]
        store._entries[1] = victim.model_copy(update={"entity": "forged"})

        result = await AuditChainVerifier(store).verify()
        assert result.valid is False
        assert result.broken_at == 2
        assert result.reason == "hash_mismatch"
        assert result.entry_id == victim.id
