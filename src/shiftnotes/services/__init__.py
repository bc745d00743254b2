"""Service layer for Shift Notes."""
