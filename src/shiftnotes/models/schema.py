"""Data models for the Shift Notes server."""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Blob identifiers are uuid4 values in lowercase "simple" hex form
BLOB_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def validate_blob_identifier(value: str) -> str:
    """Validate that a value is a blob identifier.

    Blob identifiers become file stems, so anything other than 32 lowercase
    hex characters is rejected.

    Raises:
        ValueError: If the value is not a blob identifier
    """
    if not value or not BLOB_ID_PATTERN.match(value):
        raise ValueError(
            "Blob identifier must be 32 lowercase hexadecimal characters"
        )
    return value


class NoteRecord(BaseModel):
    """A note's metadata record as stored in tblNotes."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    note_id: int = Field(..., description="Store-assigned identifier")
    account_id: int = Field(..., description="Owning account")
    title: str = Field(..., description="Title of the note")
    url: str = Field(..., description="Store-relative path of the content file")


class NoteView(BaseModel):
    """Externally visible shape of a note."""

    note_id: int
    title: str
    url: str

    @classmethod
    def from_record(cls, record: Any) -> "NoteView":
        """Project a stored record (NoteRecord or DBNote) into a view.

        Only the identifier, title and URL leave the system; the owning
        account stays internal.
        """
        return cls(note_id=record.note_id, title=record.title, url=record.url)


class Protocol(BaseModel):
    """An emergency protocol."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    protocol_id: int
    title: str
    content: str


class AuditReport(BaseModel):
    """Result of a consistency audit between note records and content files."""

    orphaned_blobs: list[str] = Field(
        default_factory=list,
        description="Content files with no note record pointing at them",
    )
    orphaned_records: list[int] = Field(
        default_factory=list,
        description="Note ids whose content file is missing",
    )
    foreign_records: list[int] = Field(
        default_factory=list,
        description="Note ids whose URL does not point into the static directory",
    )
    records_checked: int = 0
    blobs_checked: int = 0

    @field_validator("orphaned_blobs")
    @classmethod
    def _sorted_blobs(cls, value: list[str]) -> list[str]:
        return sorted(value)

    @property
    def is_consistent(self) -> bool:
        return not (self.orphaned_blobs or self.orphaned_records or self.foreign_records)
