"""Filter, debounce and dispatch for a single watched directory."""
from __future__ import annotations

import logging
import threading
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .events import ChangeEvent, EventType
from .fanout import NotificationFanout
from .matchers import PathMatcher
from .narrator import EventNarrator
from .timer import DebounceTimer

logger = logging.getLogger(__name__)

TimerFactory = Callable[[Callable[[], None], float], DebounceTimer]


class WatchTarget:
    """One coalescing group: accepted events restart a shared quiet period.

    When the timer fires, only the most recent accepted event is narrated
    and dispatched. Restarting is ``stop()`` then ``start()`` on the timer;
    a firing that is already running when a new event arrives still
    completes, and the new event gets its own firing afterwards.
    """

    def __init__(
        self,
        directory: Path,
        narrator: EventNarrator,
        fanout: NotificationFanout,
        *,
        matchers: Sequence[PathMatcher] = (),
        exclude_patterns: Sequence[str] = (),
        quiet_period: float = 1.0,
        repeat_period: Optional[float] = None,
        repeat_count: Optional[int] = None,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self.directory = Path(directory)
        self._narrator = narrator
        self._fanout = fanout
        self._matchers: List[PathMatcher] = list(matchers)
        self._exclude_patterns: List[str] = list(exclude_patterns)
        self._lock = threading.Lock()
        self._latest: Optional[ChangeEvent] = None
        if timer_factory is None:
            self._timer = DebounceTimer(self._fire, quiet_period, name=f"debounce:{self.directory.name}")
        else:
            self._timer = timer_factory(self._fire, quiet_period)
        if repeat_period is not None or repeat_count is not None:
            if repeat_period is None or repeat_count is None:
                raise ValueError("Repeat period and count must be configured together")
            self._timer.set_repeat(repeat_period, repeat_count)

    @property
    def timer(self) -> DebounceTimer:
        return self._timer

    @property
    def latest_event(self) -> Optional[ChangeEvent]:
        return self._latest

    def accepts(self, event: ChangeEvent) -> bool:
        if any(fnmatch(event.name, pattern) for pattern in self._exclude_patterns):
            return False
        if not self._matchers:
            return True
        if event.event_type is EventType.DELETED:
            name = Path(event.name).name
            return any(matcher.matches_name(name) for matcher in self._matchers)
        path = event.path
        return any(matcher.matches(path) for matcher in self._matchers)

    def submit(self, event: ChangeEvent) -> bool:
        """Record ``event`` and restart the quiet period if it passes the filters."""

        if not self.accepts(event):
            logger.debug("Ignoring %s", event)
            return False
        with self._lock:
            self._latest = event
            self._timer.stop()
            self._timer.start()
        logger.debug("Accepted %s; quiet period restarted", event)
        return True

    def close(self) -> None:
        self._timer.stop()

    def _fire(self) -> None:
        with self._lock:
            event = self._latest
        if event is None:
            return
        message = self._narrator.narrate(event)
        logger.info("%s", message)
        self._fanout.dispatch(message)
