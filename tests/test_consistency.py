"""Tests for the ConsistencyAuditor."""
from unittest.mock import patch

import pytest

from shiftnotes.exceptions import InternalError, StoreUnavailableError
from tests.conftest import ACCOUNT_ID, OTHER_ACCOUNT_ID
from tests.fakes import content


class TestAudit:
    """Tests for the read-only consistency audit."""

    def test_empty_store_is_consistent(self, auditor):
        report = auditor.audit()
        assert report.is_consistent
        assert report.records_checked == 0
        assert report.blobs_checked == 0

    def test_healthy_notes_are_consistent(self, auditor, note_manager):
        note_manager.create_note(ACCOUNT_ID, "A", content("a"))
        note_manager.create_note(OTHER_ACCOUNT_ID, "B", content("b"))
        report = auditor.audit()
        assert report.is_consistent
        assert report.records_checked == 2
        assert report.blobs_checked == 2

    def test_orphaned_blobs_are_sorted(self, auditor, blob_store):
        ids = [blob_store.generate_identifier() for _ in range(3)]
        for identifier in ids:
            blob_store.write(blob_store.blob_path(identifier), content("stray"))
        report = auditor.audit()
        assert report.orphaned_blobs == sorted(ids)
        assert not report.is_consistent

    def test_record_outside_static_dir_is_foreign(self, auditor, record_store, test_config):
        (test_config.base_dir / "elsewhere.md").write_text("moved")
        note_id = record_store.insert(ACCOUNT_ID, "Moved", "elsewhere.md")
        report = auditor.audit()
        assert report.foreign_records == [note_id]
        assert report.orphaned_records == []

    def test_record_with_missing_file_is_orphaned(self, auditor, record_store):
        note_id = record_store.insert(
            ACCOUNT_ID, "Lost", "static/0123456789abcdef0123456789abcdef.md"
        )
        report = auditor.audit()
        assert report.orphaned_records == [note_id]
        assert report.foreign_records == []

    def test_audit_does_not_repair(self, auditor, record_store, blob_store, static_dir):
        stray = blob_store.generate_identifier()
        blob_store.write(blob_store.blob_path(stray), content("stray"))
        record_store.insert(ACCOUNT_ID, "Lost", "static/0123456789abcdef0123456789abcdef.md")

        auditor.audit()
        auditor.audit()

        assert [p.stem for p in static_dir.iterdir()] == [stray]
        assert len(record_store.list_all()) == 1

    def test_store_failure_is_internal(self, auditor, record_store):
        with patch.object(
            record_store,
            "list_all",
            side_effect=StoreUnavailableError("db down", operation="list_all"),
        ):
            with pytest.raises(InternalError) as exc_info:
                auditor.audit()
        assert exc_info.value.message == "Unable to audit notes"
