"""
Batch processing of a DocuSign Retrieve index file.

Reads the index, writes one Envelope XML document per row into the output
folder and, whatever happened, archives the index and hands the finished
documents to the ingest folder.
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from app.models.schemas import BatchReport, RowOutcome
from app.utils.config import Settings, get_settings
from app.utils.helpers import generate_uuid, run_timestamp
from domains.file_ingest.errors import EmptyInputError, RowBuildError
from domains.file_ingest.processors.document_builder import (
    build_document,
    validate_headers,
    write_document,
)
from domains.file_ingest.processors.duplicates import DuplicateResolver
from domains.file_ingest.processors.existence import ExistenceGuard, SkipReason
from domains.file_ingest.processors.relocation import (
    archive_input,
    delete_empty_logs,
    move_to_ingest,
)
from domains.file_ingest.processors.row_parser import DataRow, parse_rows, read_input

RUN_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
MAX_FILE_NAME_BYTES = 255


class BatchProcessor:
    """Converts index files into Envelope documents."""

    def __init__(self, settings: Optional[Settings] = None, heartbeat: Optional[Callable[[], None]] = None):
        """
        Initialize batch processor.

        Args:
            settings: Folder and format configuration
            heartbeat: Called on progress so a liveness monitor sees activity
        """
        self.settings = settings or get_settings()
        self.heartbeat = heartbeat or (lambda: None)
        self.guard = ExistenceGuard(
            self.settings.ingest_folder,
            prefix_length=self.settings.ingest_prefix_length,
            extension=self.settings.document_extension,
        )

    def _open_run_logs(self, run_id: str, stamp: str) -> tuple[list[int], list[Path]]:
        """Attach the event and error log sinks for one run."""
        folder = self.settings.logging_folder
        folder.mkdir(parents=True, exist_ok=True)

        event_log = folder / f"{self.settings.event_log_prefix}-{stamp}.txt"
        error_log = folder / f"{self.settings.error_log_prefix}-{stamp}.txt"

        def belongs_to_run(record) -> bool:
            return record["extra"].get("run_id") == run_id

        sink_ids = [
            logger.add(event_log, level="INFO", format=RUN_LOG_FORMAT, filter=belongs_to_run),
            logger.add(error_log, level="ERROR", format=RUN_LOG_FORMAT, filter=belongs_to_run),
        ]
        return sink_ids, [event_log, error_log]

    def process(self, input_path: Path) -> BatchReport:
        """
        Run one batch over ``input_path``.

        Open, parse and row failures are logged and re-raised. The finalize
        step (log cleanup, archiving the input, ingest hand-off) always runs;
        a finalize failure is raised only when the run itself succeeded.

        Args:
            input_path: Index file to convert

        Returns:
            Report of what the run did
        """
        stamp = run_timestamp()
        run_id = f"{stamp}-{generate_uuid()[:8]}"
        log = logger.bind(run_id=run_id)
        report = BatchReport(run_id=run_id, input_path=str(input_path), started_at=datetime.now())
        logger.info(f"Processing index file: {input_path}")

        sink_ids: list[int] = []
        log_paths: list[Path] = []
        try:
            sink_ids, log_paths = self._open_run_logs(run_id, stamp)
            self._convert(input_path, report, log)
        except Exception as e:
            report.error = str(e)
            log.error(f"Exception: {e}")
            raise
        finally:
            finalize_errors = self._finalize(input_path, report, sink_ids, log_paths)

        if finalize_errors:
            raise finalize_errors[0]

        logger.info(
            f"Run {run_id} finished: {len(report.created)} created, "
            f"{len(report.skipped)} skipped, {report.blank_rows} blank rows"
        )
        return report

    def _finalize(
        self,
        input_path: Path,
        report: BatchReport,
        sink_ids: list[int],
        log_paths: list[Path],
    ) -> list[OSError]:
        """Close run logs, archive the input and hand off documents; each step runs independently."""
        errors: list[OSError] = []

        for sink_id in sink_ids:
            logger.remove(sink_id)

        try:
            delete_empty_logs(log_paths)
        except OSError as e:
            logger.error(f"Could not remove empty run logs: {e}")
            errors.append(e)

        try:
            archived = archive_input(input_path, self.settings.processed_folder)
            report.archived_path = str(archived) if archived else None
        except OSError as e:
            logger.error(f"Could not archive {input_path}: {e}")
            errors.append(e)

        try:
            handoff = move_to_ingest(
                self.settings.output_folder,
                self.settings.ingest_folder,
                self.settings.document_extension,
            )
            report.moved = handoff.moved
            report.discarded = handoff.discarded
        except OSError as e:
            logger.error(f"Could not move documents to {self.settings.ingest_folder}: {e}")
            errors.append(e)

        report.finished_at = datetime.now()
        self.heartbeat()
        return errors

    def _convert(self, input_path: Path, report: BatchReport, log) -> None:
        """Open, parse and per-row phases of a run."""
        text = read_input(input_path, self.settings.input_encoding)

        try:
            batch = parse_rows(text, self.settings.delimiter)
        except EmptyInputError as e:
            log.info(str(e))
            report.empty_input = True
            return

        report.headers = batch.headers
        self.settings.output_folder.mkdir(parents=True, exist_ok=True)

        headers_checked = False
        resolver = DuplicateResolver()
        for row in batch.rows:
            if not row.record_id:
                report.blank_rows += 1
                continue

            if not headers_checked:
                validate_headers(batch.headers)
                headers_checked = True

            suffix = resolver.resolve(row.record_id)
            report.outcomes.append(self.process_row(batch.headers, row, suffix, log))
            self.heartbeat()

    def process_row(self, headers: list[str], row: DataRow, suffix: int, log) -> RowOutcome:
        """Guard, build and write the document for one row."""
        record_id = row.record_id
        file_name = self.settings.document_name(record_id, suffix)
        if (
            "/" in record_id
            or "\\" in record_id
            or "\x00" in record_id
            or record_id in (".", "..")
            or len(file_name.encode("utf-8")) > MAX_FILE_NAME_BYTES
        ):
            raise RowBuildError(f"Line {row.line_number}: Envelope ID {record_id!r} is not a usable file name")

        path = self.settings.output_folder / file_name
        reason = self.guard.check(record_id, path)

        if reason is SkipReason.INGEST_COLLISION:
            log.bind(outcome="skipped", record_id=record_id).info(
                f"Skipped creating XML file for Envelope ID: {record_id}, "
                "matching file already exists in Ingest Folder."
            )
        elif reason is SkipReason.OUTPUT_COLLISION:
            log.bind(outcome="skipped", record_id=record_id).info(
                f"Skipped creating XML file for Envelope ID: {record_id}, "
                f"File Path: {path} already exists."
            )

        if reason is not None:
            return RowOutcome(
                record_id=record_id, suffix=suffix, path=str(path), status="skipped", reason=reason.value
            )

        try:
            document = build_document(headers, row.values, self.settings.root_element)
        except RowBuildError as e:
            raise RowBuildError(f"Line {row.line_number} ({record_id}): {e}") from e

        write_document(document, path)
        log.bind(outcome="created", record_id=record_id).info(
            f"Created XML file for Envelope ID: {record_id}, File Path: {path}"
        )
        return RowOutcome(record_id=record_id, suffix=suffix, path=str(path), status="created")
