"""Filesystem watch loop with a polling backend."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import List

from .config import MonitorConfig
from .detector import diff
from .events import ChangeEvent, ChangeKind, Snapshot
from .ledger import SuppressionLedger
from .registry import HandlerRegistry
from .scanner import ScanFailure, scan

logger = logging.getLogger(__name__)

_EVENT_LABELS = {
    ChangeKind.CREATED: "File created",
    ChangeKind.MODIFIED: "File modified",
    ChangeKind.DELETED: "File deleted",
}


class MonitorStartupError(RuntimeError):
    """Raised when the baseline scan fails and the monitor cannot start."""


class MonitorState(str, Enum):
    INITIALIZING = "initializing"
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class MonitorStats:
    """Counters emitted by the monitor for observability."""

    cycles: int = 0
    events_emitted: int = 0
    failed_scans: int = 0


class DirectoryMonitor:
    """Polls a directory tree and dispatches events for file changes.

    The previous snapshot and the suppression ledger's consume-side are only
    touched from the thread calling :meth:`run`; cycles never overlap because
    the next one is scheduled only after the current one returns.
    """

    def __init__(self, config: MonitorConfig, registry: HandlerRegistry, ledger: SuppressionLedger):
        self._config = config
        self._registry = registry
        self._ledger = ledger
        self._stop_event = threading.Event()
        self._snapshot: Snapshot = {}
        self._stats = MonitorStats()
        self.state = MonitorState.INITIALIZING

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    @property
    def snapshot(self) -> Snapshot:
        return dict(self._snapshot)

    def run(self) -> None:
        """Run the monitoring loop until stopped, performing the baseline scan first if needed."""

        if self.state is MonitorState.INITIALIZING:
            self.start()
        logger.info("Watching %s every %ss. Press Ctrl+C to stop.", self._config.root_path, self._config.poll_interval)
        try:
            while not self._stop_event.is_set():
                start_time = time.monotonic()
                self.run_cycle()
                self._sleep_until_next_cycle(start_time)
            self.state = MonitorState.STOPPED
        except KeyboardInterrupt:
            logger.info("Monitor interrupted by user")
            self.state = MonitorState.STOPPED
        except Exception:
            logger.exception("Error while watching %s", self._config.root_path)
            self.state = MonitorState.FAILED
            raise
        finally:
            logger.info(
                "Monitor stopped after %s cycles, %s events",
                self._stats.cycles,
                self._stats.events_emitted,
            )

    def start(self) -> None:
        """Create the root if needed and record the baseline without emitting events."""

        self.state = MonitorState.INITIALIZING
        root = self._config.root_path
        if not root.is_dir():
            try:
                root.mkdir(mode=0o755, parents=True, exist_ok=True)
            except OSError as exc:
                self.state = MonitorState.FAILED
                raise MonitorStartupError(f"Could not create watch directory {root}: {exc}") from exc
            logger.info("Created directory to watch: %s", root)

        try:
            self._snapshot = scan(root)
        except ScanFailure as exc:
            self.state = MonitorState.FAILED
            raise MonitorStartupError(
                f"Failed to perform initial scan on directory {root}. Please check permissions."
            ) from exc

        logger.info("Initial scan complete (%s files). Watching for changes...", len(self._snapshot))
        self.state = MonitorState.IDLE

    def stop(self) -> None:
        """Signal the monitor to stop at the next opportunity."""

        self._stop_event.set()

    def run_cycle(self) -> List[ChangeEvent]:
        """Scan once, dispatch every detected change and advance the baseline."""

        self.state = MonitorState.SCANNING
        self._ledger.purge_expired()
        try:
            current = scan(self._config.root_path)
        except ScanFailure as exc:
            logger.error("Scan failed, retrying next cycle: %s", exc)
            self._stats.failed_scans += 1
            self.state = MonitorState.IDLE
            return []

        events = diff(self._snapshot, current, self._ledger)
        for event in events:
            logger.info("%s: %s", _EVENT_LABELS[event.kind], event.path)
            self._registry.dispatch(event)

        self._snapshot = current
        self._stats.cycles += 1
        self._stats.events_emitted += len(events)
        self.state = MonitorState.IDLE
        return events

    def _sleep_until_next_cycle(self, started_at: float) -> None:
        elapsed = time.monotonic() - started_at
        remaining = max(self._config.poll_interval - elapsed, 0.0)
        if remaining > 0:
            self._stop_event.wait(remaining)
