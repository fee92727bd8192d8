"""Turn two snapshots into classified change events."""
from __future__ import annotations

import logging
from typing import List, Optional

from .events import ChangeEvent, ChangeKind, Snapshot
from .ledger import SuppressionLedger

logger = logging.getLogger(__name__)


def diff(previous: Snapshot, current: Snapshot, ledger: Optional[SuppressionLedger] = None) -> List[ChangeEvent]:
    """Compare ``previous`` against ``current``.

    Deletions are emitted before creations and modifications. A path with a
    live ledger entry is left out of the result and its entry is consumed;
    the ledger is only consulted for paths that actually changed, so marking
    a path ahead of a slow write keeps the entry until the write lands.
    """

    events: List[ChangeEvent] = []

    for path in previous.keys() - current.keys():
        if _suppressed(path, ledger):
            continue
        events.append(ChangeEvent(kind=ChangeKind.DELETED, path=path))

    for path, mtime in current.items():
        old_mtime = previous.get(path)
        if old_mtime is None:
            kind = ChangeKind.CREATED
        elif old_mtime != mtime:
            kind = ChangeKind.MODIFIED
        else:
            continue
        if _suppressed(path, ledger):
            continue
        events.append(ChangeEvent(kind=kind, path=path))

    return events


def _suppressed(path: str, ledger: Optional[SuppressionLedger]) -> bool:
    if ledger is None or not ledger.should_suppress(path):
        return False
    logger.info("Ignored file change for: %s", path)
    return True
