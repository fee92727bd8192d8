"""Recursive snapshot of a directory tree."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Union

from .events import Snapshot

logger = logging.getLogger(__name__)


class ScanFailure(Exception):
    """Raised when the watch root cannot be opened or enumerated."""

    def __init__(self, root: Path, reason: str):
        super().__init__(f"Cannot scan {root}: {reason}")
        self.root = root
        self.reason = reason


def scan(root: Union[str, Path]) -> Snapshot:
    """Return a fresh mapping of every regular file under ``root`` to its mtime.

    Entries that vanish or become unreadable while the walk is in progress are
    skipped. Only a failure to open ``root`` itself raises :class:`ScanFailure`.
    """

    root_path = Path(root).absolute()
    try:
        with os.scandir(root_path) as entries:
            top_level = list(entries)
    except OSError as exc:
        raise ScanFailure(root_path, exc.strerror or str(exc)) from exc

    results: Snapshot = {}
    for entry in _walk(top_level):
        try:
            results[entry.path] = int(entry.stat().st_mtime)
        except FileNotFoundError:
            continue
        except OSError:
            logger.debug("Skipping unreadable entry %s", entry.path)
    return results


def _walk(entries) -> Iterator[os.DirEntry]:
    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                with os.scandir(entry.path) as children:
                    yield from _walk(list(children))
            elif entry.is_file():
                yield entry
        except OSError:
            # Directories removed or locked down mid-walk are dropped silently.
            logger.debug("Skipping entry %s", entry.path)
