#!/usr/bin/env python3
"""
Index file watcher for the File Ingestion domain.

Watches the input folder for the DocuSign Retrieve ``index.csv`` and converts
it into Envelope XML documents. Uses the watchdog library for file system
notifications; detected files go through a single worker so that batch runs
never overlap.

Operator console: Enter during the arming window processes the file at once,
``q`` quits.
"""

from __future__ import annotations

import argparse
import queue
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from app.utils.config import Settings, get_settings
from app.utils.helpers import ensure_directories
from domains.file_ingest.collectors.liveness import (
    LivenessMonitor,
    LogAlertSink,
    MonitorState,
    WebhookAlertSink,
)
from domains.file_ingest.processors.batch import BatchProcessor

LISTENING_MESSAGE = "DocuSign Retrieve Monitor - Listening for DocuSign Retrieve index.csv files. Enter 'q' to quit."


class BatchWorker(threading.Thread):
    """Single consumer that arms, then processes, each detected index file."""

    def __init__(
        self,
        processor: BatchProcessor,
        state: MonitorState,
        arming_delay: float = 1.0,
        poll_interval: float = 1.0,
        confirm_event: Optional[threading.Event] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        super().__init__(name="batch-worker", daemon=True)
        self.processor = processor
        self.state = state
        self.arming_delay = arming_delay
        self.poll_interval = poll_interval
        self.confirm_event = confirm_event or threading.Event()
        self.stop_event = stop_event or threading.Event()

        self._queue: queue.Queue[Path] = queue.Queue()
        self._pending: set[Path] = set()
        self._pending_lock = threading.Lock()

    def submit(self, path: Path) -> bool:
        """
        Queue ``path`` for processing.

        Returns:
            False if the same path is already waiting
        """
        with self._pending_lock:
            if path in self._pending:
                return False
            self._pending.add(path)

        self._queue.put(path)
        return True

    def pending(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def arm(self, path: Path) -> bool:
        """
        Wait out the arming window for ``path``.

        Returns:
            True if the operator confirmed before the timer elapsed
        """
        self.confirm_event.clear()
        logger.info(
            f"DocuSign Retrieve index.csv file detected: {path}. "
            f"Processing in {self.arming_delay:g} second(s), press Enter to process now"
        )
        confirmed = self.confirm_event.wait(self.arming_delay)
        self.confirm_event.clear()
        return confirmed

    def handle(self, path: Path) -> None:
        """Arm and run one batch, recording the outcome in the monitor state."""
        with self._pending_lock:
            self._pending.discard(path)

        if self.arm(path):
            logger.info("Processing confirmed by operator")

        if not path.exists():
            logger.debug(f"Index file already handled: {path}")
            return

        try:
            self.processor.process(path)
            self.state.record_run()

        except Exception as e:
            logger.error(f"Processing of {path} failed, input needs attention: {e}")
            self.state.record_run(error=str(e))

        finally:
            self.state.heartbeat()
            logger.info(LISTENING_MESSAGE)

    def run(self) -> None:
        while not self.stop_event.is_set():
            self.state.heartbeat()
            try:
                path = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                continue

            try:
                self.handle(path)
            finally:
                self._queue.task_done()

    def drain(self) -> None:
        """Process everything already queued on the calling thread."""
        while True:
            try:
                path = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self.handle(path)
            finally:
                self._queue.task_done()


class IndexFileEventHandler(FileSystemEventHandler):
    """Forwards events for the watched index file to the batch worker."""

    def __init__(self, worker: BatchWorker, filename: str = "index.csv"):
        """
        Initialize event handler.

        Args:
            worker: Worker receiving detected files
            filename: Exact name of the index file to react to
        """
        super().__init__()
        self.worker = worker
        self.filename = filename

    def should_process(self, path: str, is_directory: bool) -> bool:
        """Check if the event path is the watched index file."""
        return not is_directory and Path(path).name == self.filename

    def _submit(self, raw_path: str) -> None:
        path = Path(raw_path)
        if self.worker.submit(path):
            logger.info(f"File detected: {path}")

    def on_created(self, event: FileSystemEvent):
        """Handle index file creation."""
        if self.should_process(event.src_path, event.is_directory):
            self._submit(event.src_path)

    def on_modified(self, event: FileSystemEvent):
        """Handle index file being rewritten in place."""
        if self.should_process(event.src_path, event.is_directory):
            self._submit(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle an index file renamed or moved into the folder."""
        dest = getattr(event, "dest_path", None)
        if dest and self.should_process(dest, event.is_directory):
            self._submit(dest)


class OperatorConsole(threading.Thread):
    """Reads operator input lines: ``q`` quits, anything else confirms."""

    def __init__(
        self,
        state: MonitorState,
        confirm_event: threading.Event,
        stop_event: threading.Event,
        stream: Optional[TextIO] = None,
    ):
        super().__init__(name="operator-console", daemon=True)
        self.state = state
        self.confirm_event = confirm_event
        self.stop_event = stop_event
        self.stream = stream

    def handle_line(self, line: str) -> None:
        self.state.heartbeat()
        if line.strip().lower() == "q":
            logger.info("Quit requested by operator")
            self.stop_event.set()
        else:
            self.confirm_event.set()

    def run(self) -> None:
        stream = self.stream or sys.stdin
        for line in stream:
            self.handle_line(line)
            if self.stop_event.is_set():
                return
        logger.debug("Console input closed")


class RetrieveMonitor:
    """Wires the observer, batch worker, liveness monitor and console together."""

    def __init__(self, settings: Optional[Settings] = None, console: bool = True):
        """Initialize the monitor."""
        self.settings = settings or get_settings()
        self.state = MonitorState(watchdog_timeout=self.settings.watchdog_timeout)
        self.stop_event = threading.Event()
        self.confirm_event = threading.Event()

        self.processor = BatchProcessor(self.settings, heartbeat=self.state.heartbeat)
        self.worker = BatchWorker(
            self.processor,
            self.state,
            arming_delay=self.settings.arming_delay,
            poll_interval=self.settings.worker_poll_interval,
            confirm_event=self.confirm_event,
            stop_event=self.stop_event,
        )
        self.event_handler = IndexFileEventHandler(self.worker, self.settings.input_filename)
        self.observer = Observer()

        sink = (
            WebhookAlertSink(self.settings.alert_webhook_url)
            if self.settings.alert_webhook_url
            else LogAlertSink()
        )
        self.liveness = LivenessMonitor(
            self.state, sink, interval=self.settings.health_check_interval, stop_event=self.stop_event
        )
        self.console = (
            OperatorConsole(self.state, self.confirm_event, self.stop_event) if console else None
        )
        self.health_server = None

    @property
    def input_path(self) -> Path:
        return self.settings.input_folder / self.settings.input_filename

    def queue_existing(self) -> bool:
        """Queue an index file that arrived while the monitor was down."""
        if self.input_path.exists():
            logger.info(f"Index file present at startup: {self.input_path}")
            return self.worker.submit(self.input_path)
        return False

    def start(self) -> None:
        """Create folders and start every background thread."""
        ensure_directories(self.settings.get_folders())

        self.observer.schedule(self.event_handler, str(self.settings.input_folder), recursive=False)
        self.observer.start()
        logger.success(f"Started watching: {self.settings.input_folder}")

        self.worker.start()
        self.liveness.start()
        if self.console is not None:
            self.console.start()

        if self.settings.health_api_enabled:
            from app.main import start_health_server

            self.health_server = start_health_server(self.state, self.settings)

        self.queue_existing()
        logger.info(LISTENING_MESSAGE)

    def stop(self) -> None:
        """Stop watching and wait for an in-flight batch to finish."""
        self.stop_event.set()
        self.observer.stop()
        self.observer.join()
        if self.worker.is_alive():
            self.worker.join()
        if self.health_server is not None:
            self.health_server.should_exit = True
        logger.info("Retrieve monitor stopped")

    def run(self) -> None:
        """Run until the operator quits or a termination signal arrives."""
        def _signal_handler(signum, frame):  # noqa: D401
            logger.info(f"Received signal {signum}, shutting down.")
            self.stop_event.set()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        self.start()
        try:
            while not self.stop_event.is_set():
                self.stop_event.wait(self.settings.worker_poll_interval)
        finally:
            self.stop()

    def run_once(self) -> int:
        """Process an index file already in the input folder, without watching."""
        ensure_directories(self.settings.get_folders())
        if not self.queue_existing():
            logger.info(f"No index file at {self.input_path}")
            return 0

        self.worker.arming_delay = 0
        self.worker.drain()
        return 1 if self.state.runs_failed else 0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch for DocuSign Retrieve index.csv files and convert each row to an XML document.",
    )
    parser.add_argument("--input-folder", type=Path, help="Folder watched for the index file.")
    parser.add_argument("--output-folder", type=Path, help="Folder documents are written to first.")
    parser.add_argument("--processed-folder", type=Path, help="Archive for consumed index files.")
    parser.add_argument("--logging-folder", type=Path, help="Folder for per-run log files.")
    parser.add_argument("--ingest-folder", type=Path, help="Downstream ingest folder.")
    parser.add_argument(
        "--arming-delay",
        type=float,
        help="Seconds to wait after detection before processing starts.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Process an index file already present and exit instead of watching.",
    )
    parser.add_argument(
        "--no-console",
        action="store_true",
        help="Do not read operator commands from stdin (service mode).",
    )

    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Apply CLI overrides on top of the environment configuration."""
    overrides = {
        name: value
        for name, value in {
            "input_folder": args.input_folder,
            "output_folder": args.output_folder,
            "processed_folder": args.processed_folder,
            "logging_folder": args.logging_folder,
            "ingest_folder": args.ingest_folder,
            "arming_delay": args.arming_delay,
        }.items()
        if value is not None
    }
    return get_settings().model_copy(update=overrides)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    from app.main import configure_logging

    args = parse_args(argv)
    settings = build_settings(args)
    configure_logging(settings.log_level)

    logger.info("File Ingestion - DocuSign Retrieve index monitor")

    try:
        monitor = RetrieveMonitor(settings, console=not args.no_console and not args.once)
        if args.once:
            return monitor.run_once()
        monitor.run()

    except KeyboardInterrupt:
        logger.info("Retrieve monitor stopped by user")
    except Exception as e:
        logger.error(f"Retrieve monitor failed: {e}")
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
