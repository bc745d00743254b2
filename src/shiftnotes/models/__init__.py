"""Database and domain models for Shift Notes."""
