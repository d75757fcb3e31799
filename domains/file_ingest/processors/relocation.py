"""Moving files between folders once a batch is finished."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from app.utils.helpers import is_empty_file, run_timestamp, unique_path


@dataclass(slots=True)
class HandoffResult:
    """Outcome of moving finished documents to the ingest folder."""

    moved: list[str] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)


def delete_empty_logs(paths: Iterable[Path]) -> list[Path]:
    """Delete each log file that exists but received no output."""

    removed = []
    for path in paths:
        if is_empty_file(path):
            path.unlink()
            removed.append(path)
    return removed


def archive_input(
    input_path: Path,
    processed_folder: Path,
    moment: Optional[datetime] = None,
) -> Optional[Path]:
    """
    Move the consumed index file into the processed folder.

    The archived name is ``<stem>_<timestamp><suffix>``, with an extra
    counter when two runs land in the same second.

    Returns:
        The archive path, or None when the input had already gone
    """
    if not input_path.exists():
        logger.warning(f"Input file no longer present, nothing to archive: {input_path}")
        return None

    processed_folder.mkdir(parents=True, exist_ok=True)
    target = unique_path(
        processed_folder / f"{input_path.stem}_{run_timestamp(moment)}{input_path.suffix}"
    )
    shutil.move(str(input_path), str(target))
    logger.info(f"File processed and moved to: {target}")
    return target


def move_to_ingest(output_folder: Path, ingest_folder: Path, extension: str = "xml") -> HandoffResult:
    """
    Hand every finished document over to the ingest folder.

    A document whose name already exists in the ingest folder is deleted from
    the output folder instead; the ingest copy is never replaced.
    """
    result = HandoffResult()
    ingest_folder.mkdir(parents=True, exist_ok=True)

    for document in sorted(output_folder.glob(f"*.{extension}")):
        destination = ingest_folder / document.name

        if destination.exists():
            document.unlink()
            result.discarded.append(document.name)
            logger.info(
                f"Deleted new XML file: {document.name} in Output Folder "
                "because it already exists in Ingest Folder."
            )
            continue

        shutil.move(str(document), str(destination))
        result.moved.append(document.name)
        logger.info(f"Moved XML file to: {destination}")

    return result
