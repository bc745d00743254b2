"""MCP server implementation for Shift Notes."""

import io
import json
import logging
import uuid
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from shiftnotes.config import ShiftNotesConfig
from shiftnotes.exceptions import InternalError, ShiftNotesError
from shiftnotes.models.db_models import init_db
from shiftnotes.observability import metrics, timed_operation
from shiftnotes.services.consistency import ConsistencyAuditor
from shiftnotes.services.note_service import NoteLifecycleManager
from shiftnotes.storage.blob_store import BlobStore
from shiftnotes.storage.record_store import NoteRecordStore

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_CONTENT_LENGTH = 1_000_000  # 1 MB


def _validate_input_lengths(
    title: Optional[str] = None, content: Optional[str] = None
) -> None:
    """Validate input string lengths at the MCP boundary."""
    if title and len(title) > MAX_TITLE_LENGTH:
        raise ValueError(
            f"Title exceeds maximum length of {MAX_TITLE_LENGTH} characters"
        )
    if content and len(content.encode("utf-8")) > MAX_CONTENT_LENGTH:
        raise ValueError(
            f"Content exceeds maximum length of {MAX_CONTENT_LENGTH} bytes"
        )


def _content_stream(content: str) -> io.BytesIO:
    return io.BytesIO(content.encode("utf-8"))


class ShiftNotesMcpServer:
    """MCP server for Shift Notes."""

    def __init__(self, cfg: ShiftNotesConfig, engine: Any = None):
        """Initialize the MCP server.

        Args:
            cfg: Configuration passed on to the blob store and database.
            engine: Pre-configured SQLAlchemy engine. When None, one is
                    created from the config.
        """
        self.config = cfg
        self.mcp = FastMCP(cfg.server_name)
        if engine is None:
            engine = init_db(cfg)
        self.records = NoteRecordStore(engine)
        self.blobs = BlobStore(cfg)
        self.manager = NoteLifecycleManager(self.records, self.blobs)
        self.auditor = ConsistencyAuditor(self.records, self.blobs)
        self._register_tools()
        logger.info("Shift Notes MCP server initialized")

    def format_error_response(self, error: Exception) -> str:
        """Format an error response carrying its status category.

        Domain errors report their own message and status; anything else is
        logged with a reference id and reported as an internal error without
        internals.
        """
        error_id = str(uuid.uuid4())[:8]

        if isinstance(error, ShiftNotesError):
            status = getattr(error, "status", InternalError.status)
            logger.error(
                f"[{error.code.name}] [{error_id}]: {error.message}",
                extra={"error_details": error.details},
            )
            return f"Error [{status}]: {error.message}"
        elif isinstance(error, ValueError):
            logger.error(f"Validation error [{error_id}]: {str(error)}")
            return f"Error [invalid_input]: {error} (ref: {error_id})"
        else:
            logger.error(f"Unexpected error [{error_id}]: {str(error)}", exc_info=True)
            return (
                f"Error [{InternalError.status}]: "
                f"An unexpected error occurred (ref: {error_id})"
            )

    def _register_tools(self) -> None:
        """Register MCP tools."""

        @self.mcp.tool(name="sn_list_protocols")
        def sn_list_protocols() -> str:
            """List every emergency protocol.
            Returns:
                JSON list of {protocol_id, title, content}
            """
            with timed_operation("sn_list_protocols") as op:
                try:
                    protocols = self.manager.list_protocols()
                    op["result_count"] = len(protocols)
                    return json.dumps([p.model_dump() for p in protocols], indent=2)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_list_notes")
        def sn_list_notes(account_id: int) -> str:
            """List the notes owned by an account.
            Args:
                account_id: The owning account
            Returns:
                JSON list of {note_id, title, url}
            """
            with timed_operation("sn_list_notes", account_id=account_id) as op:
                try:
                    views = self.manager.list_notes(account_id)
                    op["result_count"] = len(views)
                    return json.dumps([v.model_dump() for v in views], indent=2)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_create_note")
        def sn_create_note(account_id: int, title: str, content: str) -> str:
            """Add a note to an account.
            Args:
                account_id: The owning account
                title: The title of the note
                content: The note's text (stored as UTF-8 markdown)
            """
            with timed_operation("sn_create_note", account_id=account_id):
                try:
                    _validate_input_lengths(title=title, content=content)
                    self.manager.create_note(
                        account_id=account_id,
                        title=title,
                        content=_content_stream(content),
                    )
                    return "Note created successfully"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_update_note_content")
        def sn_update_note_content(note_id: int, content: str) -> str:
            """Replace the content of a note, keeping its title.
            Args:
                note_id: The note to update
                content: The new text
            """
            with timed_operation("sn_update_note_content", note_id=note_id):
                try:
                    _validate_input_lengths(content=content)
                    self.manager.update_note_content(
                        note_id=note_id, content=_content_stream(content)
                    )
                    return f"Note {note_id} updated successfully"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_update_note_title")
        def sn_update_note_title(note_id: int, title: str, content: str) -> str:
            """Replace the content and the title of a note.
            Args:
                note_id: The note to update
                title: The new title
                content: The new text
            """
            with timed_operation("sn_update_note_title", note_id=note_id):
                try:
                    _validate_input_lengths(title=title, content=content)
                    self.manager.update_note_title(
                        note_id=note_id, title=title, content=_content_stream(content)
                    )
                    return f"Note {note_id} updated successfully"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_delete_note")
        def sn_delete_note(note_id: int) -> str:
            """Delete a note's record and its content file.
            Args:
                note_id: The note to delete
            """
            with timed_operation("sn_delete_note", note_id=note_id):
                try:
                    self.manager.delete_note(note_id=note_id)
                    return f"Note {note_id} deleted successfully"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_get_note")
        def sn_get_note(note_id: int) -> str:
            """Get a note's identifier, title and URL.
            Args:
                note_id: The note to fetch
            """
            with timed_operation("sn_get_note", note_id=note_id):
                try:
                    return self.manager.get_note(note_id=note_id).model_dump_json(indent=2)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_read_note")
        def sn_read_note(note_id: int) -> str:
            """Read the content stored for a note.
            Args:
                note_id: The note to read
            """
            with timed_operation("sn_read_note", note_id=note_id):
                try:
                    data = self.manager.read_note_content(note_id=note_id)
                    return data.decode("utf-8", errors="replace")
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_audit")
        def sn_audit() -> str:
            """Report content files without records and records without files.
            Nothing is repaired; the report is for operators.
            """
            with timed_operation("sn_audit") as op:
                try:
                    report = self.auditor.audit()
                    op["consistent"] = report.is_consistent
                    return report.model_dump_json(indent=2)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="sn_status")
        def sn_status() -> str:
            """Show configuration and per-operation metrics."""
            static_dir = self.config.get_static_dir()
            status = {
                "server": self.config.server_name,
                "version": self.config.server_version,
                "static_file_directory": str(static_dir) if static_dir else None,
                "public_url_prefix": self.config.public_url_prefix,
                "summary": metrics.get_summary(),
                "operations": metrics.get_metrics(),
            }
            return json.dumps(status, indent=2, default=str)

    def run(self) -> None:
        """Run the MCP server."""
        self.mcp.run()
