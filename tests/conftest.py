"""Common test fixtures for the Shift Notes server."""

import tempfile
from pathlib import Path

import pytest

from shiftnotes.config import ShiftNotesConfig
from shiftnotes.models.db_models import DBAccount, DBProtocol, get_session_factory, init_db
from shiftnotes.services.consistency import ConsistencyAuditor
from shiftnotes.services.note_service import NoteLifecycleManager
from shiftnotes.storage.blob_store import BlobStore
from shiftnotes.storage.record_store import NoteRecordStore

ACCOUNT_ID = 1
OTHER_ACCOUNT_ID = 2
MISSING_ACCOUNT_ID = 999


@pytest.fixture
def temp_dirs():
    """Create temporary directories for the base dir and the database."""
    with tempfile.TemporaryDirectory() as base_dir:
        with tempfile.TemporaryDirectory() as db_dir:
            yield Path(base_dir), Path(db_dir)


@pytest.fixture
def test_config(temp_dirs):
    """Explicit config rooted in a temporary directory.

    Note URLs ("static/<hex>.md") resolve against base_dir, and the static
    directory is base_dir/static, so both point at the same files.
    """
    base_dir, db_dir = temp_dirs
    cfg = ShiftNotesConfig(
        base_dir=base_dir,
        static_file_directory=Path("static"),
        public_url_prefix="static",
        database_path=db_dir / "test_shiftnotes.db",
        database_url=None,
    )
    (base_dir / "static").mkdir()
    yield cfg


@pytest.fixture
def engine(test_config):
    """File-backed SQLite engine with the schema created."""
    engine = init_db(test_config)
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_engine(engine):
    """Engine with two accounts and no notes or protocols."""
    session_factory = get_session_factory(engine)
    with session_factory() as session:
        session.add_all(
            [
                DBAccount(account_id=ACCOUNT_ID, username="night-shift"),
                DBAccount(account_id=OTHER_ACCOUNT_ID, username="day-shift"),
            ]
        )
        session.commit()
    yield engine


@pytest.fixture
def seed_protocols(seeded_engine):
    """Insert two emergency protocols."""
    session_factory = get_session_factory(seeded_engine)
    with session_factory() as session:
        session.add_all(
            [
                DBProtocol(title="Fire", content="Pull the alarm, evacuate by stairwell B."),
                DBProtocol(title="Power loss", content="Switch ventilators to battery."),
            ]
        )
        session.commit()


@pytest.fixture
def record_store(seeded_engine):
    """Create a test note record store."""
    yield NoteRecordStore(seeded_engine)


@pytest.fixture
def blob_store(test_config):
    """Create a test blob store."""
    yield BlobStore(test_config)


@pytest.fixture
def note_manager(record_store, blob_store):
    """Create a test NoteLifecycleManager."""
    yield NoteLifecycleManager(record_store, blob_store)


@pytest.fixture
def auditor(record_store, blob_store):
    """Create a test ConsistencyAuditor."""
    yield ConsistencyAuditor(record_store, blob_store)


@pytest.fixture
def static_dir(test_config):
    """Absolute path of the test static directory."""
    return test_config.get_static_dir()
