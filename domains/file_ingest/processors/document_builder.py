"""Envelope XML rendering and persistence."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Sequence

from domains.file_ingest.errors import InvalidHeaderError, RowBuildError, WriteError

_ELEMENT_NAME = re.compile(r"^[^\W\d][\w.-]*\Z")


def element_name(header: str) -> str:
    """Map a header to its element name by removing spaces."""

    name = header.replace(" ", "")
    if not _ELEMENT_NAME.match(name) or name.lower().startswith("xml"):
        raise InvalidHeaderError(f"Header {header!r} is not a valid XML element name")
    return name


def validate_headers(headers: Sequence[str]) -> list[str]:
    """Return the element names for ``headers``, failing on the first bad one."""

    return [element_name(header) for header in headers]


def build_document(
    headers: Sequence[str],
    values: Sequence[str],
    root: str = "Envelope",
) -> ET.Element:
    """
    Build the document for a single row.

    Args:
        headers: Header row of the batch
        values: Field values of the row, aligned with ``headers``
        root: Tag of the root element

    Returns:
        Root element with one child per header, in header order

    Raises:
        RowBuildError: If the row and header lengths differ
    """
    if len(values) != len(headers):
        raise RowBuildError(
            f"Row has {len(values)} fields but the header has {len(headers)}"
        )

    envelope = ET.Element(root)
    for header, value in zip(headers, values):
        child = ET.SubElement(envelope, element_name(header))
        child.text = value
    return envelope


def write_document(document: ET.Element, path: Path) -> None:
    """
    Serialize ``document`` to ``path`` as indented UTF-8 XML.

    The file is opened in exclusive-create mode, so an existing document is
    never overwritten.

    Raises:
        WriteError: If the file exists already or cannot be written
    """
    tree = ET.ElementTree(document)
    ET.indent(tree)
    try:
        with path.open("xb") as handle:
            tree.write(handle, encoding="utf-8", xml_declaration=True)
    except OSError as exc:
        raise WriteError(f"Could not write {path}: {exc.strerror or exc}") from exc
