"""Exceptions raised by memvault."""

from __future__ import annotations

from pathlib import Path


class MemvaultError(Exception):
    """Base class for memvault errors."""


class FrontmatterError(MemvaultError, ValueError):
    """A memory file is missing its frontmatter block or the block is invalid.

    Always raised, never returned: a record that cannot be parsed is data
    corruption and callers must decide what to do with it.
    """

    def __init__(self, reason: str, path: Path | str | None = None) -> None:
        self.reason = reason
        self.path = Path(path) if path is not None else None
        message = f"Invalid memory file: {reason}"
        if self.path is not None:
            message = f"{message} ({self.path})"
        super().__init__(message)

    def with_path(self, path: Path | str) -> FrontmatterError:
        """Return a copy of this error annotated with the offending file."""
        return FrontmatterError(self.reason, path)
