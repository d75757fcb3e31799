"""
Helper utilities for the Retrieve Monitor.

Common functions used across domains.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from loguru import logger


def generate_uuid() -> str:
    """Generate a unique identifier."""
    return str(uuid4())


def run_timestamp(moment: Optional[datetime] = None) -> str:
    """Compact local timestamp used in run log and archive file names."""
    return (moment or datetime.now()).strftime("%Y%m%d%H%M%S")


def ensure_directories(directories: Iterable[Path]) -> None:
    """Create every directory that does not exist yet."""
    for directory in directories:
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {directory}")


def unique_path(path: Path) -> Path:
    """
    Return ``path`` or, when it is taken, the first free ``<stem>_<k><suffix>``.

    Args:
        path: Preferred destination

    Returns:
        A path that does not exist yet
    """
    if not path.exists():
        return path

    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def is_empty_file(path: Path) -> bool:
    """Check if path is an existing zero-byte file."""
    return path.is_file() and path.stat().st_size == 0
