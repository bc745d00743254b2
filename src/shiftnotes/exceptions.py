"""Custom exceptions for the Shift Notes server.

Two layers of errors live here. Collaborator errors (record store, blob
store) describe what went wrong inside one store. Boundary errors
(NotFoundError, InternalError) are the only kinds the note lifecycle manager
lets out, and carry the status category a transport maps onto its response.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Boundary errors (1xxx)
    NOT_FOUND = 1001
    INTERNAL_ERROR = 1002

    # Record store errors (2xxx)
    RECORD_NOT_FOUND = 2001
    STORE_UNAVAILABLE = 2002

    # Blob store errors (3xxx)
    BLOB_WRITE_FAILED = 3001
    BLOB_DELETE_FAILED = 3002
    BLOB_READ_FAILED = 3003
    BLOB_ROOT_UNAVAILABLE = 3004

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001
    CONFIG_MISSING = 6002


class ShiftNotesError(Exception):
    """Base exception for all Shift Notes errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


def _path_hint(path: Optional[str]) -> Optional[str]:
    # Don't expose full paths in error messages
    if not path:
        return None
    return path.replace("\\", "/").split("/")[-1]


# ---------------------------------------------------------------------------
# Boundary errors
# ---------------------------------------------------------------------------


class NotFoundError(ShiftNotesError):
    """The requested account, note or protocol set does not exist."""

    status = "not_found"
    status_code = 404

    def __init__(self, message: str, step: Optional[str] = None, **context: Any):
        details: Dict[str, Any] = {}
        if step:
            details["step"] = step
        details.update({k: v for k, v in context.items() if v is not None})
        super().__init__(message, code=ErrorCode.NOT_FOUND, details=details)
        self.step = step

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status
        result["status_code"] = self.status_code
        return result


class InternalError(ShiftNotesError):
    """A storage or database step failed for reasons outside caller control."""

    status = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        original_error: Optional[Exception] = None,
        **context: Any,
    ):
        details: Dict[str, Any] = {}
        if step:
            details["step"] = step
        details.update({k: v for k, v in context.items() if v is not None})
        if original_error:
            details["original_error"] = str(original_error)[:200]
        super().__init__(message, code=ErrorCode.INTERNAL_ERROR, details=details)
        self.step = step
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status
        result["status_code"] = self.status_code
        return result


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------


class RecordNotFoundError(ShiftNotesError):
    """Raised by the record store when no row matches."""

    def __init__(self, note_id: int, message: Optional[str] = None):
        super().__init__(
            message or f"Note with ID {note_id} not found",
            code=ErrorCode.RECORD_NOT_FOUND,
            details={"note_id": note_id}
        )
        self.note_id = note_id


class StoreUnavailableError(ShiftNotesError):
    """Raised by the record store on transport or constraint failure."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=ErrorCode.STORE_UNAVAILABLE, details=details)
        self.operation = operation
        self.original_error = original_error


class BlobError(ShiftNotesError):
    """Base class for blob store failures."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.BLOB_WRITE_FAILED,
        original_error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        hint = _path_hint(path)
        if hint:
            details["path_hint"] = hint
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.operation = operation
        self.path = path
        self.original_error = original_error


class BlobWriteError(BlobError):
    """Raised when content cannot be written to, or removed from, the static directory."""


class BlobReadError(BlobError):
    """Raised when content cannot be read back from the static directory."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            message,
            operation="read",
            path=path,
            code=ErrorCode.BLOB_READ_FAILED,
            original_error=original_error,
        )


class ConfigurationError(ShiftNotesError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
