"""
Existence checks run before a document is written.

The filesystem is the only record of what was already produced: the output
folder for this and earlier runs, the ingest folder for what downstream
systems have already been handed.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger


class SkipReason(str, Enum):
    """Why a row did not produce a document."""

    INGEST_COLLISION = "ingest_collision"
    OUTPUT_COLLISION = "output_collision"


class ExistenceGuard:
    """Decides whether a candidate document must be skipped."""

    def __init__(self, ingest_folder: Path, prefix_length: int = 36, extension: str = "xml"):
        """
        Initialize existence guard.

        Args:
            ingest_folder: Downstream intake folder to scan for prefix matches
            prefix_length: Number of leading characters compared (envelope id width)
            extension: Document extension without the dot
        """
        self.ingest_folder = ingest_folder
        self.prefix_length = prefix_length
        self.extension = extension

    def find_ingest_match(self, record_id: str, ingest_folder: Optional[Path] = None) -> Optional[Path]:
        """
        Find a document in the ingest folder whose name starts like ``record_id``.

        Both the record id and the existing file's base name must be at least
        ``prefix_length`` characters long to be compared.

        Returns:
            The first matching file, or None
        """
        folder = ingest_folder or self.ingest_folder
        if len(record_id) < self.prefix_length or not folder.is_dir():
            return None

        prefix = record_id[: self.prefix_length]
        for existing in folder.glob(f"*.{self.extension}"):
            stem = existing.stem
            if len(stem) >= self.prefix_length and stem[: self.prefix_length] == prefix:
                return existing

        return None

    def check(
        self,
        record_id: str,
        candidate_path: Path,
        ingest_folder: Optional[Path] = None,
    ) -> Optional[SkipReason]:
        """
        Check both collision rules for one candidate document.

        Args:
            record_id: Envelope ID of the row
            candidate_path: Output path the document would be written to
            ingest_folder: Override for the configured ingest folder

        Returns:
            The reason to skip, or None when the document should be written
        """
        match = self.find_ingest_match(record_id, ingest_folder)
        if match is not None:
            logger.debug(f"Ingest folder already holds {match.name} for {record_id}")
            return SkipReason.INGEST_COLLISION

        if candidate_path.exists():
            return SkipReason.OUTPUT_COLLISION

        return None

    def should_skip(
        self,
        record_id: str,
        candidate_path: Path,
        ingest_folder: Optional[Path] = None,
    ) -> bool:
        """True when either collision rule applies."""
        return self.check(record_id, candidate_path, ingest_folder) is not None
