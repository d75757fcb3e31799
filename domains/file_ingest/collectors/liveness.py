"""
Liveness monitoring for the Retrieve Monitor.

The watch loop and the batch worker report activity through
``MonitorState.heartbeat()``. A background thread checks the last heartbeat
at a fixed interval and notifies an alert sink once per stall.
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

import httpx
from loguru import logger

ALERT_MESSAGE = "The DocuSign Retrieve Monitor has stopped responding."


@dataclass
class MonitorState:
    """Shared, lock-protected state of a running monitor."""

    watchdog_timeout: float = 30.0
    last_heartbeat: datetime = field(default_factory=datetime.now)
    alerted: bool = False
    runs_completed: int = 0
    runs_failed: int = 0
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _last_beat: float = field(default_factory=time.monotonic, repr=False)

    def heartbeat(self) -> None:
        """Record activity."""
        with self._lock:
            self._last_beat = time.monotonic()
            self.last_heartbeat = datetime.now()

    def seconds_since_heartbeat(self) -> float:
        with self._lock:
            return time.monotonic() - self._last_beat

    def is_stalled(self) -> bool:
        return self.seconds_since_heartbeat() > self.watchdog_timeout

    def record_run(self, error: Optional[str] = None) -> None:
        """Count a finished batch run, successful when ``error`` is None."""
        with self._lock:
            self.last_run_at = datetime.now()
            if error is None:
                self.runs_completed += 1
            else:
                self.runs_failed += 1
                self.last_error = error


class AlertSink(Protocol):
    """Destination for liveness alerts."""

    def notify(self, message: str) -> None:
        ...


class LogAlertSink:
    """Writes alerts to the application log."""

    def notify(self, message: str) -> None:
        logger.critical(message)


class WebhookAlertSink:
    """Posts alerts to an HTTP webhook (chat or incident tooling)."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def notify(self, message: str) -> None:
        try:
            response = httpx.post(self.url, json={"text": message}, timeout=self.timeout)
            response.raise_for_status()
            logger.info("Notification sent successfully.")

        except httpx.HTTPError as e:
            logger.error(f"Failed to send notification: {e}")


class LivenessMonitor(threading.Thread):
    """Background thread that raises an alert when heartbeats stop."""

    def __init__(
        self,
        state: MonitorState,
        sink: AlertSink,
        interval: float = 10.0,
        stop_event: Optional[threading.Event] = None,
    ):
        super().__init__(name="liveness-monitor", daemon=True)
        self.state = state
        self.sink = sink
        self.interval = interval
        self.stop_event = stop_event or threading.Event()

    def check(self) -> bool:
        """
        Evaluate the state once.

        Alerts on the first check that finds the monitor stalled and re-arms
        once heartbeats resume.

        Returns:
            True if an alert was sent
        """
        if not self.state.is_stalled():
            if self.state.alerted:
                logger.info("Heartbeat resumed, liveness alert re-armed")
                self.state.alerted = False
            return False

        if self.state.alerted:
            return False

        self.state.alerted = True
        self.sink.notify(ALERT_MESSAGE)
        return True

    def run(self) -> None:
        while not self.stop_event.wait(self.interval):
            self.check()
