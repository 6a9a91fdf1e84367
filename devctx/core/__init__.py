"""Core retrieval, parsing and prompt assembly."""
