"""SQLAlchemy database models for the Shift Notes server."""
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from shiftnotes.config import ShiftNotesConfig

# Create base class for SQLAlchemy models
Base = declarative_base()


class DBAccount(Base):
    """Database model for a user account.

    Accounts are owned by the surrounding application; notes only ever check
    that one exists.
    """
    __tablename__ = "tblAccount"
    account_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=True)

    def __repr__(self) -> str:
        """Return string representation of account."""
        return f"<Account(account_id={self.account_id}, username='{self.username}')>"


class DBNote(Base):
    """Database model for a note's metadata record."""
    __tablename__ = "tblNotes"
    note_id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(
        Integer, ForeignKey("tblAccount.account_id"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    # Store-relative path of the content file, e.g. "static/<hex>.md"
    url = Column(String(512), nullable=False)

    def __repr__(self) -> str:
        """Return string representation of note."""
        return f"<Note(note_id={self.note_id}, title='{self.title}', url='{self.url}')>"


class DBProtocol(Base):
    """Database model for an emergency protocol."""
    __tablename__ = "tblProtocol"
    protocol_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of protocol."""
        return f"<Protocol(protocol_id={self.protocol_id}, title='{self.title}')>"


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url


def init_db(cfg: ShiftNotesConfig, url: Optional[str] = None) -> Engine:
    """Initialize the database and return the engine.

    For SQLite files this applies:
    - WAL (Write-Ahead Logging) mode
    - NORMAL synchronous mode
    - foreign key enforcement
    - QueuePool with pre-ping

    In-memory SQLite uses a StaticPool so every session sees the same
    database.
    """
    db_url = url or cfg.get_db_url()

    if _is_memory_url(db_url):
        engine = create_engine(
            db_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    elif db_url.startswith("sqlite"):
        # SQLite is single-writer, so a small pool is ideal
        engine = create_engine(
            db_url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=3600,
            pool_pre_ping=True,
        )
    else:
        engine = create_engine(db_url, pool_pre_ping=True)

    if db_url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            if not _is_memory_url(db_url):
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine):
    """Get a session factory for the database."""
    return sessionmaker(bind=engine, expire_on_commit=False)
