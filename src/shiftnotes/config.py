"""Configuration module for the Shift Notes server."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from shiftnotes import __version__

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config: survives reinstalls
_USER_ENV = Path.home() / ".shiftnotes" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)


class ShiftNotesConfig(BaseModel):
    """Configuration for the Shift Notes server."""

    # Base directory. Stored note URLs are resolved against it, so it plays
    # the part of the process working directory.
    base_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SHIFTNOTES_BASE_DIR", "."))
    )
    # Directory holding the note content files. An empty value means the
    # static directory is not configured and every write fails.
    static_file_directory: Optional[Path] = Field(
        default_factory=lambda: (
            Path(os.getenv("SHIFTNOTES_STATIC_FILE_DIRECTORY", "static"))
            if os.getenv("SHIFTNOTES_STATIC_FILE_DIRECTORY", "static")
            else None
        )
    )
    # Public URL scheme: <public_url_prefix>/<identifier><blob_extension>
    public_url_prefix: str = Field(
        default_factory=lambda: os.getenv("SHIFTNOTES_PUBLIC_URL_PREFIX", "static")
    )
    blob_extension: str = Field(default=".md")
    # Database configuration
    database_path: Path = Field(
        default_factory=lambda: Path(
            os.getenv("SHIFTNOTES_DATABASE_PATH", "data/db/shiftnotes.db")
        )
    )
    # Full SQLAlchemy URL, overrides database_path when set
    database_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("SHIFTNOTES_DATABASE_URL") or None
    )
    # Server configuration
    server_name: str = Field(default=os.getenv("SHIFTNOTES_SERVER_NAME", "shiftnotes"))
    server_version: str = Field(default=__version__)

    @field_validator("blob_extension")
    @classmethod
    def _validate_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("blob_extension must start with '.' (e.g. '.md')")
        return value

    @field_validator("public_url_prefix")
    @classmethod
    def _strip_prefix_slashes(cls, value: str) -> str:
        return value.strip("/")

    def get_absolute_path(self, path: Path) -> Path:
        """Convert a relative path to an absolute path based on base_dir."""
        if path.is_absolute():
            return path
        return self.base_dir / path

    def get_static_dir(self) -> Optional[Path]:
        """Get the absolute path of the static file directory.

        Returns None if not configured. Unlike get_db_url() this does not
        create the directory; a missing directory is a write failure.
        """
        if self.static_file_directory is None:
            return None
        return self.get_absolute_path(self.static_file_directory)

    def get_public_dir(self) -> Path:
        """Directory a stored URL's prefix resolves to, relative to base_dir."""
        return self.base_dir / self.public_url_prefix

    def get_db_url(self) -> str:
        """Get the database URL (SQLite file unless database_url is set)."""
        if self.database_url:
            return self.database_url
        db_path = self.get_absolute_path(self.database_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"


# Global config instance, used by the entry point only. Library classes take
# a config explicitly.
config = ShiftNotesConfig()
