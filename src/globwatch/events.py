"""Event models emitted by the watcher."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventType(str, Enum):
    """Types of file changes reported by the watcher."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Event:
    """A single change observed for a file below the watched root."""

    event_type: EventType
    path: str

    def __str__(self) -> str:
        return f"{self.event_type.value} {self.path}"
