"""Tests for hash-chain primitives."""

import hashlib
import json
from datetime import UTC, datetime, timedelta, timezone

from garrison.audit.chain import (
    GENESIS_HASH,
    canonical_payload,
    chain_entry,
    compute_hash,
    entry_hash,
    format_ts,
)
from garrison.audit.models import AuditDraft

TS = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)


class TestFormatTs:
    def test_millisecond_z_format(self) -> None:
        assert format_ts(TS) == "2025-01-02T03:04:05.678Z"

    def test_truncates_microseconds(self) -> None:
        assert format_ts(TS.replace(microsecond=678999)) == "2025-01-02T03:04:05.678Z"

    def test_converts_to_utc(self) -> None:
        local = TS.astimezone(timezone(timedelta(hours=3)))
        assert format_ts(local) == "2025-01-02T03:04:05.678Z"

    def test_naive_treated_as_utc(self) -> None:
        assert format_ts(TS.replace(tzinfo=None)) == "2025-01-02T03:04:05.678Z"


class TestCanonicalPayload:
    def test_minimal_payload(self) -> None:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        assert canonical_payload(draft, TS) == (
            '{"action":"user_login","actorId":"u1","entity":"users",'
            '"ts":"2025-01-02T03:04:05.678Z"}'
        )

    def test_optional_fields_included_when_set(self) -> None:
        draft = AuditDraft(
            actor_id="u1",
            action="course_created",
            entity="courses",
            entity_id="c1",
            ip="10.0.0.1",
            metadata={"title": "Basic"},
        )
        payload = json.loads(canonical_payload(draft, TS))
        assert payload["entityId"] == "c1"
        assert payload["ip"] == "10.0.0.1"
        assert payload["metadata"] == {"title": "Basic"}

    def test_metadata_key_order_irrelevant(self) -> None:
        a = AuditDraft(
            actor_id="u", action="a", entity="e", metadata={"x": 1, "y": {"b": 2, "a": 1}}
        )
        b = AuditDraft(
            actor_id="u", action="a", entity="e", metadata={"y": {"a": 1, "b": 2}, "x": 1}
        )
        assert canonical_payload(a, TS) == canonical_payload(b, TS)

    def test_non_ascii_kept(self) -> None:
        draft = AuditDraft(actor_id="u", action="a", entity="e", metadata={"title": "دورة"})
        assert "دورة" in canonical_payload(draft, TS)


class TestComputeHash:
    def test_sha256_of_concatenation(self) -> None:
        assert compute_hash("genesis", "{}") == hashlib.sha256(b"genesis{}").hexdigest()

    def test_previous_hash_changes_result(self) -> None:
        assert compute_hash("a", "{}") != compute_hash("b", "{}")


class TestChainEntry:
    def test_first_entry_uses_genesis(self) -> None:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        entry = chain_entry(None, draft, TS)

        assert entry.sequence == 1
        assert entry.previous_hash == GENESIS_HASH
        assert entry.ts == TS
        assert entry.immutable_hash == compute_hash(
            GENESIS_HASH, canonical_payload(draft, TS)
        )

    def test_custom_genesis(self) -> None:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        assert chain_entry(None, draft, TS, genesis_hash="root").previous_hash == "root"

    def test_links_to_previous(self) -> None:
        first = chain_entry(None, AuditDraft(actor_id="u1", action="a", entity="e"), TS)
        second = chain_entry(first, AuditDraft(actor_id="u1", action="b", entity="e"), TS)

        assert second.sequence == 2
        assert second.previous_hash == first.immutable_hash

    def test_abc_example_chain(self) -> None:
        """genesis -> A -> B -> C, each hash recomputable from the one before."""
        drafts = [
            AuditDraft(actor_id="u1", action="user_login", entity="users"),
            AuditDraft(actor_id="u1", action="course_created", entity="courses"),
            AuditDraft(actor_id="u2", action="certificate_issued", entity="certificates"),
        ]
        entries = []
        previous = None
        for i, draft in enumerate(drafts):
            previous = chain_entry(previous, draft, TS + timedelta(seconds=i))
            entries.append(previous)

        a, b, c = entries
        assert a.previous_hash == "genesis"
        assert b.previous_hash == a.immutable_hash
        assert c.previous_hash == b.immutable_hash
        assert [e.sequence for e in entries] == [1, 2, 3]

        for entry in entries:
            assert entry_hash(entry) == entry.immutable_hash

    def test_tampered_field_changes_hash(self) -> None:
        entry = chain_entry(None, AuditDraft(actor_id="u1", action="a", entity="e"), TS)
        tampered = entry.model_copy(update={"actor_id": "u2"})

        assert entry_hash(tampered) != entry.immutable_hash

    def test_default_ts_is_millisecond_precision(self) -> None:
        entry = chain_entry(None, AuditDraft(actor_id="u1", action="a", entity="e"))
        assert entry.ts.microsecond % 1000 == 0
        assert entry_hash(entry) == entry.immutable_hash
