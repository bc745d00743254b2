"""Service layer for note lifecycle operations."""

import logging
from typing import BinaryIO, List, Optional

from shiftnotes.exceptions import (
    BlobError,
    InternalError,
    NotFoundError,
    RecordNotFoundError,
    ShiftNotesError,
    StoreUnavailableError,
)
from shiftnotes.models.schema import NoteRecord, NoteView, Protocol
from shiftnotes.observability import traced
from shiftnotes.storage.blob_store import BlobStore
from shiftnotes.storage.record_store import NoteRecordStore

logger = logging.getLogger(__name__)


class NoteLifecycleManager:
    """Keeps note records and their content files in step.

    Each mutation is two independent writes, one to the blob store and one
    to the record store, with no compensating transaction between them:

    - create writes the file first, then the record. A failed insert leaves
      an orphaned file behind.
    - update deletes the file, writes the new content to the same path,
      and (title variant) updates the title. A failed write leaves the record
      pointing at a missing file.
    - delete removes the file, then the record. A failed record delete leaves
      a record with a dangling URL.

    Those orphan states are accepted outcomes; nothing here retries or
    repairs them. Every collaborator error is translated on the spot to
    NotFoundError or InternalError.
    """

    def __init__(self, records: NoteRecordStore, blobs: BlobStore):
        self.records = records
        self.blobs = blobs

    # =========================================================================
    # Reads
    # =========================================================================

    @traced("list_protocols")
    def list_protocols(self) -> List[Protocol]:
        """Return every emergency protocol.

        Raises:
            NotFoundError: If there are none.
            InternalError: If they could not be fetched.
        """
        try:
            protocols = self.records.list_protocols()
        except StoreUnavailableError as e:
            logger.error(f"Failed to fetch protocols: {e}")
            raise InternalError(
                "Failed to fetch protocols", step="fetch protocols", original_error=e
            ) from e

        if not protocols:
            raise NotFoundError("No protocols were found", step="fetch protocols")
        return protocols

    @traced("list_notes")
    def list_notes(self, account_id: int) -> List[NoteView]:
        """Return the notes owned by an account.

        Raises:
            NotFoundError: If the account does not exist, it has no notes, or
                the notes could not be fetched.
        """
        self._require_account(account_id)

        try:
            records = self.records.list_by_account(account_id)
        except StoreUnavailableError as e:
            logger.warning(f"Note listing failed for account {account_id}: {e}")
            raise NotFoundError(
                "No notes were found", step="notes", account_id=account_id
            ) from e

        if not records:
            raise NotFoundError("No notes were found", step="notes", account_id=account_id)
        return [NoteView.from_record(record) for record in records]

    @traced("get_note")
    def get_note(self, note_id: int) -> NoteView:
        """Return a single note's view.

        Raises:
            NotFoundError: If the note does not exist.
        """
        return NoteView.from_record(self._get_record(note_id))

    @traced("read_note_content")
    def read_note_content(self, note_id: int) -> bytes:
        """Return the content stored for a note.

        Raises:
            NotFoundError: If the note does not exist.
            InternalError: If its content file cannot be read.
        """
        record = self._get_record(note_id)
        try:
            return self.blobs.read(self.blobs.path_for_url(record.url))
        except BlobError as e:
            logger.error(f"Content file for note {note_id} unreadable: {e}")
            raise InternalError(
                "Unable to read static file",
                step="read static file",
                original_error=e,
                note_id=note_id,
            ) from e

    # =========================================================================
    # Mutations
    # =========================================================================

    @traced("create_note")
    def create_note(self, account_id: int, title: str, content: BinaryIO) -> None:
        """Create a note: write its content file, then its record.

        Raises:
            NotFoundError: If the account does not exist. No file is written.
            InternalError: If the file or the record could not be saved. A
                failed record insert leaves the written file in place.
        """
        self._require_account(account_id)

        try:
            identifier = self.blobs.generate_identifier()
            file_path = self.blobs.blob_path(identifier)
            url = self.blobs.public_url(identifier)
            self.blobs.write(file_path, content)
        except BlobError as e:
            logger.error(f"Failed to save content file for account {account_id}: {e}")
            raise InternalError(
                "Unable to save file",
                step="save file",
                original_error=e,
                account_id=account_id,
            ) from e

        try:
            note_id = self.records.insert(account_id, title, url)
        except ShiftNotesError as e:
            logger.error(
                f"Failed to save note record for account {account_id}; "
                f"content file {file_path.name} left without a record: {e}"
            )
            raise InternalError(
                "Unable to save file in database",
                step="save file in database",
                original_error=e,
                account_id=account_id,
            ) from e

        logger.info(f"Created note {note_id} for account {account_id} at {url}")

    @traced("update_note_content")
    def update_note_content(self, note_id: int, content: BinaryIO) -> None:
        """Replace a note's content, keeping its URL.

        Raises:
            NotFoundError: If the note does not exist.
            InternalError: If the content file could not be replaced.
        """
        record = self._get_record(note_id)
        self._replace_content(record, content)
        logger.info(f"Updated content of note {note_id}")

    @traced("update_note_title")
    def update_note_title(self, note_id: int, title: str, content: BinaryIO) -> None:
        """Replace a note's content and then its title.

        Raises:
            NotFoundError: If the note does not exist.
            InternalError: If the content file could not be replaced, or the
                title could not be saved after the content was.
        """
        record = self._get_record(note_id)
        self._replace_content(record, content)

        try:
            self.records.update_title(note_id, title)
        except ShiftNotesError as e:
            logger.error(f"Content of note {note_id} updated but title is stale: {e}")
            raise InternalError(
                "Failed to update the notes title",
                step="update title",
                original_error=e,
                note_id=note_id,
            ) from e
        logger.info(f"Updated content and title of note {note_id}")

    @traced("delete_note")
    def delete_note(self, note_id: int) -> None:
        """Delete a note: remove its content file, then its record.

        Raises:
            NotFoundError: If the note does not exist. Nothing is changed.
            InternalError: If the file could not be removed (record kept), or
                the record could not be removed after the file was.
        """
        record = self._get_record(note_id)
        file_path = self.blobs.path_for_url(record.url)

        try:
            self.blobs.delete(file_path)
        except BlobError as e:
            logger.error(f"Failed to delete content file of note {note_id}: {e}")
            raise InternalError(
                "Unable to delete static file",
                step="delete static file",
                original_error=e,
                note_id=note_id,
            ) from e

        try:
            self.records.delete(note_id)
        except ShiftNotesError as e:
            logger.error(
                f"Content file of note {note_id} deleted but record remains: {e}"
            )
            raise InternalError(
                "Unable to remove file from database",
                step="remove file from database",
                original_error=e,
                note_id=note_id,
            ) from e

        logger.info(f"Deleted note {note_id}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_account(self, account_id: int) -> None:
        """Raise NotFoundError unless the account exists.

        A failed lookup counts as a missing account.
        """
        try:
            exists = self.records.account_exists(account_id)
        except StoreUnavailableError as e:
            logger.warning(f"Account lookup failed for {account_id}: {e}")
            exists = False
            cause: Optional[Exception] = e
        else:
            cause = None

        if not exists:
            raise NotFoundError(
                "User account not found", step="account", account_id=account_id
            ) from cause

    def _get_record(self, note_id: int) -> NoteRecord:
        """Fetch a record, mapping any failure to NotFoundError."""
        try:
            return self.records.get_by_id(note_id)
        except (RecordNotFoundError, StoreUnavailableError) as e:
            raise NotFoundError("Note not found", step="note", note_id=note_id) from e

    def _replace_content(self, record: NoteRecord, content: BinaryIO) -> None:
        """Delete the note's content file and write new content to the same path.

        The delete is unconditional: a file that is already missing fails the
        whole update rather than being recreated.
        """
        file_path = self.blobs.path_for_url(record.url)

        try:
            self.blobs.overwrite(file_path, content)
        except BlobError as e:
            if e.operation == "delete":
                logger.error(f"Failed to remove old content of note {record.note_id}: {e}")
            else:
                logger.error(
                    f"Old content of note {record.note_id} removed but new content "
                    f"could not be written; record now points at a missing file: {e}"
                )
            raise InternalError(
                "Unable to update static file",
                step="update static file",
                original_error=e,
                note_id=record.note_id,
            ) from e
