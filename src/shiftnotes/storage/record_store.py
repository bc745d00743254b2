"""Repository for note metadata records."""

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from shiftnotes.exceptions import RecordNotFoundError, StoreUnavailableError
from shiftnotes.models.db_models import DBAccount, DBNote, DBProtocol, get_session_factory
from shiftnotes.models.schema import NoteRecord, Protocol

logger = logging.getLogger(__name__)


class NoteRecordStore:
    """Access to note metadata rows, account existence and protocol rows.

    Every SQLAlchemy failure is translated to StoreUnavailableError. A query
    that matches nothing is not a failure: existence checks return False and
    listings return empty lists. Only single-row operations raise
    RecordNotFoundError.
    """

    def __init__(self, engine: Any, session_factory: Optional[Any] = None):
        """Initialize the store.

        Args:
            engine: SQLAlchemy engine with the schema already created
                (see init_db()).
            session_factory: Optional pre-built session factory for the engine.
        """
        self.engine = engine
        self.session_factory = session_factory or get_session_factory(engine)

    def account_exists(self, account_id: int) -> bool:
        """Check whether an account with this id exists."""
        try:
            with self.session_factory() as session:
                found = session.scalar(
                    select(DBAccount.account_id).where(DBAccount.account_id == account_id)
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to look up account {account_id}",
                operation="account_exists",
                original_error=e,
            ) from e
        return found is not None

    def list_by_account(self, account_id: int) -> List[NoteRecord]:
        """Get every note record owned by an account, oldest first."""
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(DBNote)
                    .where(DBNote.account_id == account_id)
                    .order_by(DBNote.note_id)
                ).all()
                return [NoteRecord.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to list notes for account {account_id}",
                operation="list_by_account",
                original_error=e,
            ) from e

    def list_all(self) -> List[NoteRecord]:
        """Get every note record in the store."""
        try:
            with self.session_factory() as session:
                rows = session.scalars(select(DBNote).order_by(DBNote.note_id)).all()
                return [NoteRecord.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                "Failed to list notes",
                operation="list_all",
                original_error=e,
            ) from e

    def get_by_id(self, note_id: int) -> NoteRecord:
        """Get a note record by id.

        Raises:
            RecordNotFoundError: If no row matches.
            StoreUnavailableError: On database failure.
        """
        try:
            with self.session_factory() as session:
                row = session.get(DBNote, note_id)
                if row is None:
                    raise RecordNotFoundError(note_id)
                return NoteRecord.model_validate(row)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to fetch note {note_id}",
                operation="get_by_id",
                original_error=e,
            ) from e

    def insert(self, account_id: int, title: str, url: str) -> int:
        """Insert a note record and return its store-assigned id."""
        try:
            with self.session_factory() as session:
                row = DBNote(account_id=account_id, title=title, url=url)
                session.add(row)
                session.commit()
                note_id = row.note_id
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to insert note for account {account_id}",
                operation="insert",
                original_error=e,
            ) from e
        logger.debug(f"Inserted note record {note_id} for account {account_id}")
        return note_id

    def update_title(self, note_id: int, title: str) -> None:
        """Set a note's title.

        Raises:
            RecordNotFoundError: If no row was updated.
        """
        try:
            with self.session_factory() as session:
                result = session.execute(
                    update(DBNote).where(DBNote.note_id == note_id).values(title=title)
                )
                session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to update title of note {note_id}",
                operation="update_title",
                original_error=e,
            ) from e
        if result.rowcount == 0:
            raise RecordNotFoundError(note_id)

    def delete(self, note_id: int) -> None:
        """Delete a note record.

        Raises:
            RecordNotFoundError: If no row was deleted.
        """
        try:
            with self.session_factory() as session:
                result = session.execute(delete(DBNote).where(DBNote.note_id == note_id))
                session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                f"Failed to delete note {note_id}",
                operation="delete",
                original_error=e,
            ) from e
        if result.rowcount == 0:
            raise RecordNotFoundError(note_id)

    def list_protocols(self) -> List[Protocol]:
        """Get every emergency protocol."""
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(DBProtocol).order_by(DBProtocol.protocol_id)
                ).all()
                return [Protocol.model_validate(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(
                "Failed to fetch protocols",
                operation="list_protocols",
                original_error=e,
            ) from e
