"""Exceptions raised by the file ingestion domain."""

from pathlib import Path


class FileIngestError(Exception):
    """Base exception for index file ingestion."""


class InputNotFoundError(FileIngestError):
    """Raised when the index file disappeared before it could be read."""

    def __init__(self, path: Path):
        super().__init__(f"Input file not found: {path}")
        self.path = path


class InputUnreadableError(FileIngestError):
    """Raised when the index file exists but cannot be read or decoded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Input file could not be read: {path} ({reason})")
        self.path = path


class EmptyInputError(FileIngestError):
    """Raised when the index file contains no lines at all."""


class RowBuildError(FileIngestError):
    """Raised when a row cannot be turned into a document."""


class InvalidHeaderError(RowBuildError):
    """Raised when a header does not map to a legal XML element name."""


class WriteError(FileIngestError):
    """Raised when a document cannot be persisted."""
