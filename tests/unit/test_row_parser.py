import pytest

from domains.file_ingest.errors import EmptyInputError, InputNotFoundError, InputUnreadableError
from domains.file_ingest.processors.row_parser import parse_rows, read_input, split_line


def test_parse_rows_headers_and_rows_in_order():
    batch = parse_rows('"Envelope ID", "Status"\nE1, Sent\nE2,"Completed"\n')

    assert batch.headers == ["Envelope ID", "Status"]
    assert [row.values for row in batch.rows] == [["E1", "Sent"], ["E2", "Completed"]]
    assert [row.line_number for row in batch.rows] == [2, 3]
    assert batch.rows[0].record_id == "E1"


def test_parse_rows_header_only():
    batch = parse_rows("EnvelopeID,Status")

    assert batch.headers == ["EnvelopeID", "Status"]
    assert batch.rows == []


def test_parse_rows_empty_text_raises():
    with pytest.raises(EmptyInputError):
        parse_rows("")


def test_blank_line_has_blank_record_id():
    batch = parse_rows("EnvelopeID,Status\n\n,Ignored\n")

    assert [row.record_id for row in batch.rows] == ["", ""]


def test_quoted_delimiter_is_split_not_unescaped():
    # Documented limitation: quotes are stripped, the comma still splits.
    assert split_line('E1,"Smith, John"') == ["E1", "Smith", "John"]


def test_parse_rows_custom_delimiter():
    batch = parse_rows("EnvelopeID;Status\nE1;Sent", delimiter=";")

    assert batch.rows[0].values == ["E1", "Sent"]


def test_read_input_strips_bom(tmp_path):
    path = tmp_path / "index.csv"
    path.write_bytes("\ufeffEnvelopeID,Status\n".encode("utf-8"))

    assert read_input(path).startswith("EnvelopeID")


def test_read_input_missing_file(tmp_path):
    with pytest.raises(InputNotFoundError):
        read_input(tmp_path / "missing.csv")


def test_read_input_undecodable(tmp_path):
    path = tmp_path / "index.csv"
    path.write_bytes(b"EnvelopeID\n\xff\xfe\xfa")

    with pytest.raises(InputUnreadableError):
        read_input(path)


def test_read_input_directory_is_unreadable(tmp_path):
    with pytest.raises(InputUnreadableError):
        read_input(tmp_path)


def test_whitespace_only_text_is_empty():
    with pytest.raises(EmptyInputError):
        parse_rows("\n  \n\t\n")
