import time
from datetime import datetime
from typing import Callable, List

import pytest


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class RecordingChannel:
    def __init__(self, name: str = "recording"):
        self.name = name
        self.messages: List[str] = []

    def deliver(self, message: str) -> None:
        self.messages.append(message)


class FailingChannel:
    name = "failing"

    def __init__(self):
        self.calls = 0

    def deliver(self, message: str) -> None:
        self.calls += 1
        raise RuntimeError("channel is down")


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2024, 3, 5, 14, 7, 9, 123456)
