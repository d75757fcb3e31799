"""Delimited index file parsing.

Splitting is a plain split on the delimiter, not RFC-4180: quotes are
stripped, never interpreted, so a quoted field holding the delimiter comes
out as extra fields. Such rows are rejected later by the document builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from domains.file_ingest.errors import (
    EmptyInputError,
    InputNotFoundError,
    InputUnreadableError,
)


@dataclass(slots=True)
class DataRow:
    """One data line of an index file."""

    values: list[str]
    line_number: int

    @property
    def record_id(self) -> str:
        return self.values[0] if self.values else ""


@dataclass(slots=True)
class InputBatch:
    """Header row plus data rows of a single index file."""

    headers: list[str]
    rows: list[DataRow] = field(default_factory=list)


def clean_field(raw: str) -> str:
    """Trim whitespace and drop every literal quote character."""

    return raw.strip().replace('"', "")


def split_line(line: str, delimiter: str = ",") -> list[str]:
    """Split ``line`` on ``delimiter`` and clean each field."""

    return [clean_field(part) for part in line.split(delimiter)]


def parse_rows(text: str, delimiter: str = ",") -> InputBatch:
    """Turn raw index file content into an :class:`InputBatch`."""

    lines = text.splitlines()
    if not any(line.strip() for line in lines):
        raise EmptyInputError("The input file is empty.")

    headers = split_line(lines[0], delimiter)
    rows = [
        DataRow(values=split_line(line, delimiter), line_number=number)
        for number, line in enumerate(lines[1:], start=2)
    ]
    return InputBatch(headers=headers, rows=rows)


def read_input(path: Path, encoding: str = "utf-8-sig") -> str:
    """Read the whole index file, mapping failures onto ingest errors."""

    try:
        return path.read_text(encoding=encoding)
    except FileNotFoundError as exc:
        raise InputNotFoundError(path) from exc
    except UnicodeDecodeError as exc:
        raise InputUnreadableError(path, f"not valid {encoding}: {exc.reason}") from exc
    except OSError as exc:
        raise InputUnreadableError(path, exc.strerror or str(exc)) from exc
