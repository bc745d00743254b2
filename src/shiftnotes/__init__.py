"""
Shift Notes - note lifecycle manager for a multi-user account application.
Each note pairs a relational metadata record (owner, title, public URL) with
a content file kept in a static directory. This package keeps the two in step
across create, update and delete, and serves the operations as an MCP server.

This version uses synchronous operations.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shiftnotes")
except PackageNotFoundError:
    __version__ = "0.3.0"
