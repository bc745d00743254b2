"""Tests for the NoteRecordStore."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from shiftnotes.exceptions import ErrorCode, RecordNotFoundError, StoreUnavailableError
from shiftnotes.models.schema import NoteRecord
from shiftnotes.storage.record_store import NoteRecordStore
from tests.conftest import ACCOUNT_ID, MISSING_ACCOUNT_ID, OTHER_ACCOUNT_ID


def _broken_store(engine) -> NoteRecordStore:
    """A store whose every session raises a transport error."""
    factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("db down")))
    return NoteRecordStore(engine, session_factory=factory)


class TestAccounts:
    """Tests for account existence checks."""

    def test_existing_account(self, record_store):
        assert record_store.account_exists(ACCOUNT_ID) is True

    def test_missing_account_is_false_not_error(self, record_store):
        assert record_store.account_exists(MISSING_ACCOUNT_ID) is False

    def test_transport_failure_raises(self, seeded_engine):
        store = _broken_store(seeded_engine)
        with pytest.raises(StoreUnavailableError) as exc_info:
            store.account_exists(ACCOUNT_ID)
        assert exc_info.value.operation == "account_exists"
        assert exc_info.value.code == ErrorCode.STORE_UNAVAILABLE


class TestNoteRecords:
    """Tests for note record CRUD."""

    def test_insert_assigns_ids(self, record_store):
        first = record_store.insert(ACCOUNT_ID, "Shift Log", "static/a.md")
        second = record_store.insert(ACCOUNT_ID, "Handover", "static/b.md")
        assert isinstance(first, int)
        assert second != first

    def test_get_by_id(self, record_store):
        note_id = record_store.insert(ACCOUNT_ID, "Shift Log", "static/a.md")
        record = record_store.get_by_id(note_id)
        assert record == NoteRecord(
            note_id=note_id, account_id=ACCOUNT_ID, title="Shift Log", url="static/a.md"
        )

    def test_get_missing_raises_not_found(self, record_store):
        with pytest.raises(RecordNotFoundError) as exc_info:
            record_store.get_by_id(12345)
        assert exc_info.value.note_id == 12345

    def test_list_by_account_is_scoped_and_ordered(self, record_store):
        a = record_store.insert(ACCOUNT_ID, "A", "static/a.md")
        record_store.insert(OTHER_ACCOUNT_ID, "Other", "static/o.md")
        b = record_store.insert(ACCOUNT_ID, "B", "static/b.md")
        records = record_store.list_by_account(ACCOUNT_ID)
        assert [r.note_id for r in records] == [a, b]
        assert all(r.account_id == ACCOUNT_ID for r in records)

    def test_list_by_account_empty(self, record_store):
        assert record_store.list_by_account(ACCOUNT_ID) == []

    def test_list_all(self, record_store):
        record_store.insert(ACCOUNT_ID, "A", "static/a.md")
        record_store.insert(OTHER_ACCOUNT_ID, "B", "static/b.md")
        assert len(record_store.list_all()) == 2

    def test_update_title(self, record_store):
        note_id = record_store.insert(ACCOUNT_ID, "Old", "static/a.md")
        record_store.update_title(note_id, "New")
        record = record_store.get_by_id(note_id)
        assert record.title == "New"
        assert record.url == "static/a.md"

    def test_update_title_missing(self, record_store):
        with pytest.raises(RecordNotFoundError):
            record_store.update_title(12345, "New")

    def test_delete(self, record_store):
        note_id = record_store.insert(ACCOUNT_ID, "A", "static/a.md")
        record_store.delete(note_id)
        with pytest.raises(RecordNotFoundError):
            record_store.get_by_id(note_id)

    def test_delete_missing(self, record_store):
        with pytest.raises(RecordNotFoundError):
            record_store.delete(12345)

    def test_insert_for_unknown_account_violates_foreign_key(self, record_store):
        """Foreign keys are enforced, so the constraint failure surfaces."""
        with pytest.raises(StoreUnavailableError) as exc_info:
            record_store.insert(MISSING_ACCOUNT_ID, "A", "static/a.md")
        assert exc_info.value.operation == "insert"
        assert isinstance(exc_info.value.original_error, IntegrityError)

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.list_by_account(ACCOUNT_ID),
            lambda s: s.list_all(),
            lambda s: s.get_by_id(1),
            lambda s: s.insert(ACCOUNT_ID, "A", "static/a.md"),
            lambda s: s.update_title(1, "A"),
            lambda s: s.delete(1),
            lambda s: s.list_protocols(),
        ],
    )
    def test_transport_failures_are_translated(self, seeded_engine, call):
        with pytest.raises(StoreUnavailableError):
            call(_broken_store(seeded_engine))


class TestProtocols:
    """Tests for protocol listing."""

    def test_no_protocols(self, record_store):
        assert record_store.list_protocols() == []

    def test_list_protocols(self, record_store, seed_protocols):
        protocols = record_store.list_protocols()
        assert [p.title for p in protocols] == ["Fire", "Power loss"]
        assert protocols[0].protocol_id < protocols[1].protocol_id
