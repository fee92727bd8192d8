"""Short-lived record of paths whose next change was caused by the watcher itself."""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL = 2.0


class SuppressionLedger:
    """Single-shot, time-bounded suppression of change events keyed by path.

    Handlers call :meth:`mark` before writing a file so that the next scan does
    not dispatch that write as an external change. The monitor thread consumes
    entries through :meth:`should_suppress`, so access is guarded by a lock.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, *, clock: Callable[[], float] = time.time):
        self._ttl = ttl
        self._clock = clock
        self._entries: Dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def mark(self, path: str) -> None:
        with self._lock:
            self._entries[str(path)] = self._clock()
        logger.debug("Marked %s for suppression", path)

    def should_suppress(self, path: str) -> bool:
        """Consume the entry for ``path``; True only when it had not expired."""

        now = self._clock()
        with self._lock:
            inserted_at = self._entries.pop(str(path), None)
        if inserted_at is None:
            return False
        return not self._is_expired(inserted_at, now)

    def purge_expired(self, now: Optional[float] = None) -> int:
        if now is None:
            now = self._clock()
        with self._lock:
            expired = [path for path, inserted_at in self._entries.items() if self._is_expired(inserted_at, now)]
            for path in expired:
                del self._entries[path]
        if expired:
            logger.debug("Purged %s expired suppression entries", len(expired))
        return len(expired)

    def _is_expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at > self._ttl

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return str(path) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
