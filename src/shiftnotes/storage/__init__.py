"""Storage layer for the Shift Notes server."""

from shiftnotes.storage.blob_store import BlobStore
from shiftnotes.storage.record_store import NoteRecordStore

__all__ = [
    "BlobStore",
    "NoteRecordStore",
]
