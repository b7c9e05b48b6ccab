import threading
import time
from types import SimpleNamespace

import pytest

from conftest import wait_until
from dirnotify import timer as timer_module
from dirnotify.timer import DebounceTimer, TimerStateError


class Counter:
    def __init__(self):
        self.count = 0
        self.lock = threading.Lock()

    def __call__(self):
        with self.lock:
            self.count += 1


def test_single_shot_fires_once_and_returns_to_idle():
    counter = Counter()
    timer = DebounceTimer(counter, 0.05)
    started = time.monotonic()
    timer.start()
    assert timer.running

    assert wait_until(lambda: counter.count == 1)
    elapsed = time.monotonic() - started
    assert elapsed >= 0.05
    assert wait_until(lambda: not timer.running)
    time.sleep(0.15)
    assert counter.count == 1


def test_does_not_fire_before_quiet_period():
    counter = Counter()
    timer = DebounceTimer(counter, 0.5)
    timer.start()
    time.sleep(0.1)
    assert counter.count == 0
    timer.stop()


def test_repeat_fires_exact_count_then_stops():
    counter = Counter()
    timer = DebounceTimer(counter, 0.02)
    timer.set_repeat(0.02, 3)
    timer.start()

    assert wait_until(lambda: not timer.running)
    time.sleep(0.1)
    assert counter.count == 3


def test_start_while_running_fails():
    timer = DebounceTimer(lambda: None, 1.0)
    timer.start()
    try:
        with pytest.raises(TimerStateError):
            timer.start()
    finally:
        timer.stop()


def test_stop_when_idle_is_noop():
    timer = DebounceTimer(lambda: None, 0.0)
    timer.stop()
    timer.stop()
    assert not timer.running


def test_stop_cancels_pending_firing_and_resets_counter():
    counter = Counter()
    timer = DebounceTimer(counter, 0.02)
    timer.set_repeat(0.02, 100)
    timer.start()
    assert wait_until(lambda: counter.count >= 2)
    timer.stop()
    assert timer.fired_count == 0
    fired = counter.count
    time.sleep(0.1)
    assert counter.count == fired


def test_stopped_timer_can_be_restarted():
    counter = Counter()
    timer = DebounceTimer(counter, 0.02)
    timer.start()
    timer.stop()
    timer.start()
    assert wait_until(lambda: counter.count == 1)
    assert wait_until(lambda: not timer.running)
    timer.start()
    assert wait_until(lambda: counter.count == 2)


def test_restart_coalesces_burst_into_one_firing():
    counter = Counter()
    timer = DebounceTimer(counter, 0.1)
    for _ in range(5):
        timer.stop()
        timer.start()
        time.sleep(0.02)
    assert wait_until(lambda: counter.count == 1)
    time.sleep(0.2)
    assert counter.count == 1


class StoppedDuringWait(threading.Event):
    """Behaves as if stop() landed just after the quiet period ran out."""

    def wait(self, timeout=None):
        super().wait(timeout)
        self.set()
        return False


def test_stop_after_wait_expires_skips_action(monkeypatch):
    counter = Counter()
    timer = DebounceTimer(counter, 0.01)
    monkeypatch.setattr(
        timer_module,
        "threading",
        SimpleNamespace(Event=StoppedDuringWait, Thread=threading.Thread, current_thread=threading.current_thread),
    )

    timer.start()
    timer.join(1.0)

    assert counter.count == 0
    timer.stop()


def test_stop_does_not_interrupt_running_action():
    # stop() then start() while the action runs: the in-flight call finishes
    # and the new run fires again, so a burst can yield two notifications.
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def action():
        calls.append(time.monotonic())
        if len(calls) == 1:
            entered.set()
            release.wait(1.0)

    timer = DebounceTimer(action, 0.01)
    timer.start()
    assert entered.wait(1.0)
    timer.stop()
    timer.start()
    release.set()
    assert wait_until(lambda: len(calls) == 2)
    assert wait_until(lambda: not timer.running)


def test_failing_action_still_completes_cycle():
    def action():
        raise RuntimeError("boom")

    timer = DebounceTimer(action, 0.01)
    timer.start()
    assert wait_until(lambda: not timer.running)


class TestValidation:
    def test_negative_quiet_period(self):
        with pytest.raises(ValueError):
            DebounceTimer(lambda: None, -1)

    def test_zero_quiet_period_allowed(self):
        counter = Counter()
        timer = DebounceTimer(counter, 0)
        timer.start()
        assert wait_until(lambda: counter.count == 1)

    @pytest.mark.parametrize("period, count", [(0, 1), (-1, 1), (1, 0), (1, -2)])
    def test_invalid_repeat_settings(self, period, count):
        with pytest.raises(ValueError):
            DebounceTimer(lambda: None, 1).set_repeat(period, count)

    def test_repeat_change_while_running(self):
        timer = DebounceTimer(lambda: None, 1.0)
        timer.start()
        try:
            with pytest.raises(TimerStateError):
                timer.set_repeat(1, 2)
        finally:
            timer.stop()
