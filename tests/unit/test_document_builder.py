import xml.etree.ElementTree as ET

import pytest

from domains.file_ingest.errors import InvalidHeaderError, RowBuildError, WriteError
from domains.file_ingest.processors.document_builder import (
    build_document,
    element_name,
    validate_headers,
    write_document,
)


def test_document_round_trip(tmp_path):
    path = tmp_path / "abc123.xml"
    write_document(build_document(["EnvelopeID", "Status"], ["abc123", "Completed"]), path)

    root = ET.parse(path).getroot()

    assert root.tag == "Envelope"
    assert [(child.tag, child.text) for child in root] == [
        ("EnvelopeID", "abc123"),
        ("Status", "Completed"),
    ]
    assert path.read_text(encoding="utf-8").startswith("<?xml")


def test_spaces_removed_from_header():
    root = build_document(["Envelope ID", "Sender Email"], ["E1", "a@b.com"])

    assert [child.tag for child in root] == ["EnvelopeID", "SenderEmail"]


def test_values_are_escaped_not_altered(tmp_path):
    path = tmp_path / "E1.xml"
    write_document(build_document(["Subject"], ["Fees <2024> & more"]), path)

    assert ET.parse(path).getroot()[0].text == "Fees <2024> & more"


@pytest.mark.parametrize("header", ["1Status", "Sent@", "xmlThing", ""])
def test_illegal_header_rejected(header):
    with pytest.raises(InvalidHeaderError):
        element_name(header)


def test_validate_headers_maps_all():
    assert validate_headers(["Envelope ID", "Status"]) == ["EnvelopeID", "Status"]


def test_short_row_rejected():
    with pytest.raises(RowBuildError):
        build_document(["EnvelopeID", "Status"], ["E1"])


def test_long_row_rejected():
    with pytest.raises(RowBuildError):
        build_document(["EnvelopeID", "Name"], ["E1", "Smith", "John"])


def test_write_never_overwrites(tmp_path):
    path = tmp_path / "E1.xml"
    path.write_text("original")

    with pytest.raises(WriteError):
        write_document(build_document(["EnvelopeID"], ["E1"]), path)

    assert path.read_text() == "original"


def test_unicode_header_accepted():
    root = build_document(["EnvelopeID", "Empfänger"], ["E1", "Müller"])

    assert [child.tag for child in root] == ["EnvelopeID", "Empfänger"]
