"""Event models shared across watcher components."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

# Absolute path -> whole-second modification time.
Snapshot = Dict[str, int]


class ChangeKind(str, Enum):
    """Types of filesystem changes emitted by the watcher."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change observed in the watched directory tree."""

    kind: ChangeKind
    path: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.path}"
