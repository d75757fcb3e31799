"""
Service-level tests for the BatchProcessor.

Each test runs a complete batch against real folders under tmp_path and
checks what ends up on disk: documents in the ingest folder, the archived
index file and the run logs.
"""

import sys
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

# Add project root to path to allow absolute imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from domains.file_ingest.collectors.index_watcher import RetrieveMonitor
from domains.file_ingest.errors import InputNotFoundError, InvalidHeaderError, RowBuildError
from domains.file_ingest.processors.batch import BatchProcessor

SCENARIO = "EnvelopeID,Status\nE1,Sent\nE1,Voided\n,Ignored\n"


def names(folder: Path) -> list[str]:
    return sorted(p.name for p in folder.iterdir())


def test_duplicates_get_suffixes_and_blank_ids_are_skipped(settings, write_index):
    input_path = write_index(SCENARIO)

    report = BatchProcessor(settings).process(input_path)

    assert [Path(o.path).name for o in report.created] == ["E1.xml", "E1_1.xml"]
    assert [o.suffix for o in report.outcomes] == [0, 1]
    assert report.blank_rows == 1
    assert report.error is None

    assert names(settings.ingest_folder) == ["E1.xml", "E1_1.xml"]
    assert names(settings.output_folder) == []
    voided = ET.parse(settings.ingest_folder / "E1_1.xml").getroot()
    assert voided.find("Status").text == "Voided"


def test_input_is_archived_with_timestamp(settings, write_index):
    input_path = write_index(SCENARIO)

    report = BatchProcessor(settings).process(input_path)

    assert not input_path.exists()
    archived = Path(report.archived_path)
    assert archived.parent == settings.processed_folder
    assert archived.name.startswith("index_") and archived.suffix == ".csv"
    assert archived.read_text() == SCENARIO


def test_event_log_kept_error_log_deleted(settings, write_index):
    BatchProcessor(settings).process(write_index(SCENARIO))

    logs = names(settings.logging_folder)
    assert len(logs) == 1
    assert logs[0].startswith(settings.event_log_prefix)
    content = (settings.logging_folder / logs[0]).read_text()
    assert "Created XML file for Envelope ID: E1" in content


def test_empty_input_is_a_successful_no_op(settings, write_index):
    report = BatchProcessor(settings).process(write_index(""))

    assert report.empty_input
    assert report.outcomes == []
    assert report.error is None
    assert names(settings.ingest_folder) == []
    assert len(names(settings.processed_folder)) == 1

    event_log = next(settings.logging_folder.glob(f"{settings.event_log_prefix}-*.txt"))
    assert "The input file is empty." in event_log.read_text()


def test_existing_output_is_skipped_but_duplicate_still_written(settings, write_index):
    existing = settings.output_folder / "E1.xml"
    existing.write_text("<Envelope><Status>Earlier</Status></Envelope>")

    report = BatchProcessor(settings).process(write_index(SCENARIO))

    first, second = report.outcomes
    assert first.status == "skipped" and first.reason == "output_collision"
    assert second.status == "created" and Path(second.path).name == "E1_1.xml"

    # the pre-existing document is handed off untouched
    assert (settings.ingest_folder / "E1.xml").read_text() == "<Envelope><Status>Earlier</Status></Envelope>"


def test_second_run_never_overwrites(settings, write_index):
    processor = BatchProcessor(settings)
    processor.process(write_index(SCENARIO))
    delivered = settings.ingest_folder / "E1.xml"
    delivered.write_text("downstream copy")

    report = processor.process(write_index(SCENARIO))

    assert delivered.read_text() == "downstream copy"
    assert sorted(report.discarded) == ["E1.xml", "E1_1.xml"]
    assert names(settings.output_folder) == []
    assert len(names(settings.processed_folder)) == 2


def test_ingest_prefix_collision_skips_row(settings, write_index):
    envelope_id = "0f8fad5b-d9cb-469f-a165-70867728950e"
    (settings.ingest_folder / f"{envelope_id}.xml").write_text("<Envelope/>")

    report = BatchProcessor(settings).process(write_index(f"EnvelopeID,Status\n{envelope_id},Sent\n"))

    assert report.outcomes[0].reason == "ingest_collision"
    assert report.created == []


def test_short_row_aborts_run_but_input_is_archived(settings, write_index):
    input_path = write_index("EnvelopeID,Status\nE1,Sent\nE2\nE3,Sent\n")

    with pytest.raises(RowBuildError, match="Line 3"):
        BatchProcessor(settings).process(input_path)

    assert not input_path.exists()
    assert len(names(settings.processed_folder)) == 1
    # rows before the failure were written and handed off
    assert names(settings.ingest_folder) == ["E1.xml"]

    error_log = next(settings.logging_folder.glob(f"{settings.error_log_prefix}-*.txt"))
    assert "Exception:" in error_log.read_text()


def test_invalid_header_aborts_before_any_document(settings, write_index):
    with pytest.raises(InvalidHeaderError):
        BatchProcessor(settings).process(write_index("EnvelopeID,1st Signer\nE1,Ann\n"))

    assert names(settings.ingest_folder) == []


def test_path_like_record_id_is_rejected(settings, write_index):
    with pytest.raises(RowBuildError):
        BatchProcessor(settings).process(write_index("EnvelopeID,Status\n../E1,Sent\n"))

    assert names(settings.ingest_folder) == []


def test_missing_input_propagates(settings):
    with pytest.raises(InputNotFoundError):
        BatchProcessor(settings).process(settings.input_folder / "index.csv")

    assert names(settings.processed_folder) == []


def test_heartbeat_called_during_run(settings, write_index):
    beats = []

    BatchProcessor(settings, heartbeat=lambda: beats.append(1)).process(write_index(SCENARIO))

    assert len(beats) >= 2


def test_monitor_run_once(settings, write_index):
    pytest.importorskip("watchdog", reason="watchdog dependency is required for the monitor")
    write_index(SCENARIO)
    monitor = RetrieveMonitor(settings, console=False)

    assert monitor.run_once() == 0
    assert monitor.state.runs_completed == 1
    assert names(settings.ingest_folder) == ["E1.xml", "E1_1.xml"]


def test_monitor_run_once_without_input(settings):
    pytest.importorskip("watchdog", reason="watchdog dependency is required for the monitor")

    assert RetrieveMonitor(settings, console=False).run_once() == 0


@pytest.mark.parametrize(
    "content",
    [
        "\n",
        "EnvelopeID,Status,\n",
        "EnvelopeID,1st Signer\n,Ann\n,Bob\n",
    ],
)
def test_batches_without_buildable_rows_complete(settings, write_index, content):
    report = BatchProcessor(settings).process(write_index(content))

    assert report.error is None
    assert report.created == []
    assert len(names(settings.processed_folder)) == 1


def test_blank_id_batch_leaves_no_run_logs(settings, write_index):
    report = BatchProcessor(settings).process(write_index("EnvelopeID,Status\n,x\n,y\n"))

    assert report.blank_rows == 2
    assert names(settings.logging_folder) == []


def test_archive_failure_still_hands_off_documents(settings, write_index, monkeypatch):
    def read_only_archive(input_path, processed_folder):
        raise PermissionError("processed folder is read-only")

    monkeypatch.setattr("domains.file_ingest.processors.batch.archive_input", read_only_archive)

    with pytest.raises(PermissionError):
        BatchProcessor(settings).process(write_index(SCENARIO))

    assert names(settings.ingest_folder) == ["E1.xml", "E1_1.xml"]


def test_archive_failure_does_not_hide_row_error(settings, write_index, monkeypatch):
    def read_only_archive(input_path, processed_folder):
        raise PermissionError("processed folder is read-only")

    monkeypatch.setattr("domains.file_ingest.processors.batch.archive_input", read_only_archive)

    with pytest.raises(RowBuildError):
        BatchProcessor(settings).process(write_index("EnvelopeID,Status\nE1,Sent\nE2\n"))

    assert names(settings.ingest_folder) == ["E1.xml"]


def test_run_log_setup_failure_still_archives_input(settings, write_index, monkeypatch):
    def broken_logs(self, run_id, stamp):
        raise PermissionError("logging folder is read-only")

    monkeypatch.setattr(BatchProcessor, "_open_run_logs", broken_logs)
    input_path = write_index(SCENARIO)

    with pytest.raises(PermissionError):
        BatchProcessor(settings).process(input_path)

    assert not input_path.exists()
    assert len(names(settings.processed_folder)) == 1


@pytest.mark.parametrize("record_id", ["E\x001", "A" * 300])
def test_unusable_record_id_is_a_row_error(settings, write_index, record_id):
    with pytest.raises(RowBuildError):
        BatchProcessor(settings).process(write_index(f"EnvelopeID,Status\n{record_id},Sent\n"))

    assert names(settings.ingest_folder) == []
