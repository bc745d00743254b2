"""MCP server for Shift Notes."""
