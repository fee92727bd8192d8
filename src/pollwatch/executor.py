"""Background execution of handler jobs."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class JobExecutor:
    """Fire-and-forget job submission on a thread pool.

    ``max_workers=0`` runs each job inline in the submitting thread, which keeps
    dispatch deterministic in tests.
    """

    def __init__(self, max_workers: int = 4):
        self._pool: Optional[ThreadPoolExecutor] = None
        if max_workers > 0:
            self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pollwatch")
        self.submitted = 0

    def submit(self, name: str, fn: Callable[..., Any], *args: Any) -> Future:
        self.submitted += 1
        if self._pool is None:
            future: Future = Future()
            try:
                future.set_result(fn(*args))
            except Exception as exc:
                future.set_exception(exc)
        else:
            future = self._pool.submit(fn, *args)
        future.add_done_callback(lambda done: _report(name, done))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; jobs already submitted still run to completion."""

        if self._pool is not None:
            self._pool.shutdown(wait=wait)


def _report(name: str, future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Job %s failed", name, exc_info=(type(exc), exc, exc.__traceback__))
