"""Content file storage for notes."""

import logging
import os
import shutil
import uuid
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Union

from shiftnotes.config import ShiftNotesConfig
from shiftnotes.exceptions import (
    BlobReadError,
    BlobWriteError,
    ConfigurationError,
    ErrorCode,
)
from shiftnotes.models.schema import BLOB_ID_PATTERN, validate_blob_identifier

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class BlobStore:
    """Stores note content as files under the configured static directory.

    Files are named ``<identifier><extension>`` where the identifier is a
    random 128-bit value in lowercase hex. The store itself has no notion of
    notes; it only knows paths and bytes.
    """

    def __init__(self, cfg: ShiftNotesConfig):
        """Initialize the blob store.

        Args:
            cfg: Configuration naming the base directory, the static file
                directory and the public URL scheme. The store never falls
                back to the global config.

        Raises:
            ConfigurationError: If the static directory and the URL prefix
                name different directories, so a minted URL would not point
                at the file just written.
        """
        static_dir = cfg.get_static_dir()
        if static_dir is not None:
            public_dir = cfg.get_public_dir()
            if static_dir.resolve() != public_dir.resolve():
                raise ConfigurationError(
                    f"Static file directory {static_dir} does not match URL prefix "
                    f"{cfg.public_url_prefix!r} under {cfg.base_dir}",
                    config_key="public_url_prefix",
                )
        self._config = cfg
        logger.info(
            f"BlobStore initialized: static_dir={cfg.get_static_dir()}, "
            f"url_prefix={cfg.public_url_prefix!r}"
        )

    @property
    def static_dir(self) -> Path:
        """Absolute static directory; raises BlobWriteError when not configured."""
        static_dir = self._config.get_static_dir()
        if static_dir is None:
            raise BlobWriteError(
                "Unable to find static file directory",
                operation="resolve_root",
                code=ErrorCode.BLOB_ROOT_UNAVAILABLE,
            )
        return static_dir

    @staticmethod
    def generate_identifier() -> str:
        """Generate a fresh, unguessable blob identifier (32 hex chars)."""
        return uuid.uuid4().hex

    def blob_path(self, identifier: str) -> Path:
        """Filesystem path a new blob with this identifier is written to."""
        validate_blob_identifier(identifier)
        return self.static_dir / f"{identifier}{self._config.blob_extension}"

    def public_url(self, identifier: str) -> str:
        """Externally advertised URL for a blob identifier."""
        validate_blob_identifier(identifier)
        name = f"{identifier}{self._config.blob_extension}"
        if not self._config.public_url_prefix:
            return name
        return f"{self._config.public_url_prefix}/{name}"

    def path_for_url(self, url: str) -> Path:
        """Resolve a stored note URL to the file it names.

        The URL is used as a path fragment relative to base_dir. This is the
        only place that turns a stored URL back into a path.
        """
        return self._config.base_dir / PurePosixPath(url)

    def exists(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def write(self, path: PathLike, content: BinaryIO) -> Path:
        """Persist a content stream at ``path``.

        Raises:
            BlobWriteError: If the static directory is not configured or not
                reachable, the file already exists, or the stream cannot be
                drained. A partially written file is removed first.
        """
        file_path = Path(path)
        # Fail early when the root itself is unusable
        static_dir = self.static_dir
        if not file_path.parent.is_dir():
            raise BlobWriteError(
                "Static file directory is not reachable",
                operation="write",
                path=str(file_path),
                code=ErrorCode.BLOB_ROOT_UNAVAILABLE,
            )

        try:
            with open(file_path, "xb") as f:
                shutil.copyfileobj(content, f)
        except FileExistsError as e:
            raise BlobWriteError(
                "Content file already exists",
                operation="write",
                path=str(file_path),
                original_error=e,
            ) from e
        except Exception as e:
            # The file may have been created before the stream failed
            try:
                file_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(
                    f"Failed to remove partial content file {file_path.name}: {cleanup_error}"
                )
            raise BlobWriteError(
                "Failed to write content file",
                operation="write",
                path=str(file_path),
                original_error=e,
            ) from e

        logger.debug(f"Wrote content file {file_path.name} under {static_dir}")
        return file_path

    def delete(self, path: PathLike) -> None:
        """Remove the file at ``path``.

        Not idempotent: a missing file is a failure.

        Raises:
            BlobWriteError: If the file does not exist or cannot be removed.
        """
        file_path = Path(path)
        try:
            os.remove(file_path)
        except OSError as e:
            raise BlobWriteError(
                "Failed to delete content file",
                operation="delete",
                path=str(file_path),
                code=ErrorCode.BLOB_DELETE_FAILED,
                original_error=e,
            ) from e
        logger.debug(f"Deleted content file {file_path.name}")

    def overwrite(self, path: PathLike, content: BinaryIO) -> None:
        """Replace the content at an existing path.

        Implemented as delete-then-write: if the write fails, the path is
        left absent and the old content is gone.
        """
        self.delete(path)
        self.write(path, content)

    def read(self, path: PathLike) -> bytes:
        """Read the content stored at ``path``.

        Raises:
            BlobReadError: If the file is missing or unreadable.
        """
        file_path = Path(path)
        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as e:
            raise BlobReadError(
                "Failed to read content file",
                path=str(file_path),
                original_error=e,
            ) from e

    def list_identifiers(self) -> List[str]:
        """List identifiers of every blob in the static directory.

        Files that don't follow the ``<hex32><extension>`` naming are
        ignored. Returns an empty list if the directory does not exist.
        """
        static_dir = self.static_dir
        if not static_dir.is_dir():
            return []
        identifiers = []
        for file_path in static_dir.glob(f"*{self._config.blob_extension}"):
            stem = file_path.name[: -len(self._config.blob_extension)]
            if BLOB_ID_PATTERN.match(stem):
                identifiers.append(stem)
        return sorted(identifiers)
