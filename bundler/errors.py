"""Fatal build failures. Per-asset problems are recorded, not raised."""

from __future__ import annotations


class BuildError(Exception):
    """Base class for failures that abort a build before any output."""


class BuildDirectoryNotFound(BuildError):
    """Raised when the configured build directory does not exist."""


class EntryNotFound(BuildError):
    """Raised when none of the entry-document candidates exist."""


class EntryUnreadable(BuildError):
    """Raised when the entry document exists but cannot be read."""


class StructuralParseFailure(BuildError):
    """Raised in structural mode when the entry lacks <head> or <body>."""
