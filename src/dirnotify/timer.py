"""Restartable debounce timer with optional bounded repetition."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerStateError(RuntimeError):
    """Raised when the timer is used in a way its current state forbids."""


class DebounceTimer:
    """Runs ``action`` once a quiet period has elapsed after :meth:`start`.

    By default the action fires once and the timer returns to idle. After
    :meth:`set_repeat` the action fires ``count`` times in total: first after
    the quiet period, then every ``period`` seconds, after which the timer
    stops itself.

    Every :meth:`start` spawns a fresh scheduling thread, so a stopped timer
    can be started again. There is no atomic re-arm: restarting the quiet
    period means ``stop()`` followed by ``start()``. An action that is already
    executing when ``stop()`` is called runs to completion; only future
    firings are cancelled. That firing can therefore overlap with the first
    firing of the next run.
    """

    def __init__(self, action: Callable[[], None], quiet_period: float, *, name: str = "debounce-timer"):
        if action is None:
            raise TypeError("Timer action must not be None")
        if quiet_period < 0:
            raise ValueError("Quiet period cannot be negative")
        self._action = action
        self._quiet_period = float(quiet_period)
        self._repeat_period: Optional[float] = None
        self._repeat_count = 1
        self._name = name
        self._lock = threading.Lock()
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._fired = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def fired_count(self) -> int:
        """Firings completed since the last start."""

        return self._fired

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    def set_repeat(self, period: float, count: int) -> None:
        """Fire ``count`` times in total, ``period`` seconds apart."""

        with self._lock:
            if self._running:
                raise TimerStateError("Cannot change repeat settings while the timer is running")
            if period <= 0 or count <= 0:
                raise ValueError("Repeat period and count must be greater than zero")
            self._repeat_period = float(period)
            self._repeat_count = int(count)

    def start(self) -> None:
        with self._lock:
            if self._running:
                raise TimerStateError("Timer is already running")
            self._running = True
            self._fired = 0
            cancel = threading.Event()
            self._cancel = cancel
            thread = threading.Thread(
                target=self._run,
                args=(cancel, self._repeat_period, self._repeat_count),
                name=self._name,
                daemon=True,
            )
            self._thread = thread
        thread.start()

    def stop(self) -> None:
        """Cancel pending firings. Safe to call when idle."""

        with self._lock:
            if self._cancel is not None:
                self._cancel.set()
            self._cancel = None
            self._running = False
            self._fired = 0

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the most recently started scheduling thread to exit."""

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, cancel: threading.Event, repeat_period: Optional[float], repeat_count: int) -> None:
        delay = self._quiet_period
        while not cancel.wait(delay):
            if cancel.is_set():
                return
            try:
                self._action()
            except Exception:
                logger.exception("Timer action failed in %s", self._name)

            with self._lock:
                if cancel.is_set():
                    return
                self._fired += 1
                if repeat_period is None or self._fired >= repeat_count:
                    logger.debug("%s finished after %s firing(s)", self._name, self._fired)
                    cancel.set()
                    self._cancel = None
                    self._running = False
                    return
            delay = repeat_period
