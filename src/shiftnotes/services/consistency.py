"""Read-only consistency audit between note records and content files."""

import logging
from pathlib import Path

from shiftnotes.exceptions import BlobError, InternalError, StoreUnavailableError
from shiftnotes.models.schema import AuditReport
from shiftnotes.storage.blob_store import BlobStore
from shiftnotes.storage.record_store import NoteRecordStore

logger = logging.getLogger(__name__)


class ConsistencyAuditor:
    """Reports orphaned content files and orphaned note records.

    The lifecycle manager accepts these states as failure outcomes and never
    repairs them. The auditor only reports; cleaning up is an operator
    decision.
    """

    def __init__(self, records: NoteRecordStore, blobs: BlobStore):
        self.records = records
        self.blobs = blobs

    def audit(self) -> AuditReport:
        """Compare every note record against the static directory.

        Raises:
            InternalError: If either store cannot be listed.
        """
        try:
            records = self.records.list_all()
            identifiers = set(self.blobs.list_identifiers())
        except (StoreUnavailableError, BlobError) as e:
            logger.error(f"Consistency audit failed: {e}")
            raise InternalError(
                "Unable to audit notes", step="audit", original_error=e
            ) from e

        static_dir = self.blobs.static_dir.resolve()
        referenced = set()
        orphaned_records = []
        foreign_records = []

        for record in records:
            path = self.blobs.path_for_url(record.url).resolve()
            if path.parent != static_dir:
                foreign_records.append(record.note_id)
            else:
                referenced.add(Path(record.url).stem)
            if not self.blobs.exists(path):
                orphaned_records.append(record.note_id)

        report = AuditReport(
            orphaned_blobs=list(identifiers - referenced),
            orphaned_records=orphaned_records,
            foreign_records=foreign_records,
            records_checked=len(records),
            blobs_checked=len(identifiers),
        )
        if report.is_consistent:
            logger.info(
                f"Consistency audit clean: {report.records_checked} records, "
                f"{report.blobs_checked} files"
            )
        else:
            logger.warning(
                f"Consistency audit found {len(report.orphaned_blobs)} orphaned files, "
                f"{len(report.orphaned_records)} orphaned records, "
                f"{len(report.foreign_records)} records outside the static directory"
            )
        return report
