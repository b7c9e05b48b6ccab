from pathlib import Path

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from dirnotify.config import AppConfig, WatchConfig
from dirnotify.events import EventType
from dirnotify.watcher import ChangeEventHandler, DirectoryWatcher


@pytest.fixture
def received():
    return []


@pytest.fixture
def handler(tmp_path, received):
    return ChangeEventHandler(tmp_path, received.append)


def test_created_modified_deleted(handler, received, tmp_path):
    handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))
    handler.dispatch(FileModifiedEvent(str(tmp_path / "a.txt")))
    handler.dispatch(FileDeletedEvent(str(tmp_path / "a.txt")))

    assert [event.event_type for event in received] == [EventType.CREATED, EventType.MODIFIED, EventType.DELETED]
    assert all(event.name == "a.txt" and event.watch_path == tmp_path for event in received)


def test_move_within_directory(handler, received, tmp_path):
    handler.dispatch(FileMovedEvent(str(tmp_path / "a.tmp"), str(tmp_path / "a.pdf")))

    assert [(event.event_type, event.name) for event in received] == [
        (EventType.DELETED, "a.tmp"),
        (EventType.CREATED, "a.pdf"),
    ]


def test_move_out_of_directory_is_a_deletion(handler, received, tmp_path):
    handler.dispatch(FileMovedEvent(str(tmp_path / "a.pdf"), str(tmp_path.parent / "elsewhere.pdf")))
    assert [(event.event_type, event.name) for event in received] == [(EventType.DELETED, "a.pdf")]


def test_watched_directory_itself_and_other_kinds_ignored(handler, received, tmp_path):
    handler.dispatch(DirModifiedEvent(str(tmp_path)))
    handler.dispatch(FileClosedEvent(str(tmp_path / "a.txt")))
    assert received == []


def test_nested_name_is_relative(handler, received, tmp_path):
    handler.dispatch(FileCreatedEvent(str(tmp_path / "sub" / "b.txt")))
    assert received[0].name == "sub/b.txt"


def test_recursive_watch_drops_parent_directory_modification(tmp_path, received):
    handler = ChangeEventHandler(tmp_path, received.append, recursive=True)

    handler.dispatch(FileCreatedEvent(str(tmp_path / "sub" / "x.pdf")))
    handler.dispatch(DirModifiedEvent(str(tmp_path / "sub")))

    assert [(event.event_type, event.name) for event in received] == [(EventType.CREATED, "sub/x.pdf")]


def test_non_recursive_watch_keeps_directory_modification(handler, received, tmp_path):
    handler.dispatch(DirModifiedEvent(str(tmp_path / "sub")))
    assert [(event.event_type, event.name) for event in received] == [(EventType.MODIFIED, "sub")]


def test_sink_errors_are_contained(tmp_path):
    def sink(event):
        raise RuntimeError("boom")

    ChangeEventHandler(tmp_path, sink).dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))


class FakeObserver:
    def __init__(self):
        self.scheduled = []
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        self.scheduled.append((handler, path, recursive))

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True

    def join(self, timeout=None):
        pass


class ShutdownChannel:
    def __init__(self):
        self.closed = False

    def deliver(self, message):
        pass

    def shutdown(self):
        self.closed = True


def test_directory_watcher_lifecycle(tmp_path):
    observer = FakeObserver()
    channel = ShutdownChannel()
    config = AppConfig(watches=[WatchConfig(path=tmp_path, recursive=True, quiet_period=0.01)])
    watcher = DirectoryWatcher(config, [channel], observer_factory=lambda: observer)

    watcher.stop()
    watcher.run()

    assert observer.started and observer.stopped
    assert observer.scheduled[0][1:] == (str(tmp_path), True)
    assert isinstance(observer.scheduled[0][0], ChangeEventHandler)
    assert observer.scheduled[0][0]._recursive is True
    assert channel.closed
    assert len(watcher.targets) == 1


def test_missing_directory_fails(tmp_path):
    config = AppConfig(watches=[WatchConfig(path=Path(tmp_path / "missing"))])
    watcher = DirectoryWatcher(config, [], observer_factory=FakeObserver)
    with pytest.raises(FileNotFoundError):
        watcher.run()
