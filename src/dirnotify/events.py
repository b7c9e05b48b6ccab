"""Event models shared across watcher components."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional


class EventType(str, Enum):
    """Types of filesystem changes reported for a watched directory."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """A single change observed in a watched directory.

    ``captured_at`` is the moment the raw notification was wrapped, not the
    moment the operating system produced it.
    """

    event_type: EventType
    name: str
    watch_path: Path
    captured_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.name is None or self.watch_path is None:
            raise TypeError("ChangeEvent requires a name and a watch path")
        if not isinstance(self.event_type, EventType):
            object.__setattr__(self, "event_type", EventType(self.event_type))
        if not isinstance(self.watch_path, Path):
            object.__setattr__(self, "watch_path", Path(self.watch_path))

    @classmethod
    def capture(
        cls,
        watch_path: Path,
        name: str,
        event_type: EventType,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "ChangeEvent":
        """Wrap a raw (directory, name, kind) notification with a capture time."""

        now = clock() if clock is not None else datetime.now()
        return cls(event_type=EventType(event_type), name=name, watch_path=Path(watch_path), captured_at=now)

    @property
    def path(self) -> Path:
        """Full path of the affected entry."""

        return self.watch_path / self.name

    def __str__(self) -> str:
        return (
            f"Event: {self.event_type.value}, Name: {self.name}, "
            f"Path: {self.watch_path}, Captured: {self.captured_at.isoformat()}"
        )
