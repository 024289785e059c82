"""Tests for audit models."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from garrison.audit.chain import chain_entry
from garrison.audit.models import AuditDraft, AuditLogEntry, AuditLogFilter, utc_now


class TestAuditDraft:
    def test_required_fields(self) -> None:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        assert draft.entity_id is None
        assert draft.ip is None
        assert draft.metadata is None

    def test_empty_action_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AuditDraft(actor_id="u1", action="", entity="users")

    def test_frozen(self) -> None:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        with pytest.raises(ValidationError):
            draft.action = "other"  # type: ignore[misc]


class TestAuditLogEntry:
    def test_to_draft_strips_chain_fields(self) -> None:
        draft = AuditDraft(
            actor_id="u1", action="course_created", entity="courses", entity_id="c1"
        )
        entry = chain_entry(None, draft)
        assert entry.to_draft() == draft

    def test_sequence_must_be_positive(self) -> None:
        entry = chain_entry(None, AuditDraft(actor_id="u", action="a", entity="e"))
        with pytest.raises(ValidationError):
            AuditLogEntry(**{**entry.model_dump(), "sequence": 0})


def test_utc_now_millisecond_precision() -> None:
    now = utc_now()
    assert now.tzinfo is not None
    assert now.microsecond % 1000 == 0


class TestAuditLogFilter:
    @pytest.fixture
    def entry(self) -> AuditLogEntry:
        draft = AuditDraft(actor_id="u1", action="user_login", entity="users")
        return chain_entry(None, draft, datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC))

    def test_empty_filter_matches(self, entry: AuditLogEntry) -> None:
        assert AuditLogFilter().matches(entry)

    def test_field_filters(self, entry: AuditLogEntry) -> None:
        assert AuditLogFilter(actor_id="u1", action="user_login").matches(entry)
        assert not AuditLogFilter(actor_id="u2").matches(entry)
        assert not AuditLogFilter(entity="courses").matches(entry)

    def test_time_window(self, entry: AuditLogEntry) -> None:
        ts = entry.ts
        assert AuditLogFilter(start_time=ts, end_time=ts).matches(entry)
        assert not AuditLogFilter(start_time=ts + timedelta(seconds=1)).matches(entry)
        assert not AuditLogFilter(end_time=ts - timedelta(seconds=1)).matches(entry)

    def test_naive_bounds_treated_as_utc(self, entry: AuditLogEntry) -> None:
        naive = entry.ts.replace(tzinfo=None)
        window = AuditLogFilter(start_time=naive, end_time=naive)

        assert window.start_time == entry.ts
        assert window.matches(entry)
