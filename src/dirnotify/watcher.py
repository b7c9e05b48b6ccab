"""Bridges watchdog observers to the notification pipeline."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .config import AppConfig, WatchConfig
from .events import ChangeEvent, EventType
from .fanout import MessageChannel, NotificationFanout
from .matchers import build_matcher
from .narrator import VOCABULARIES, EventNarrator
from .pipeline import WatchTarget

logger = logging.getLogger(__name__)

EventSink = Callable[[ChangeEvent], object]


class ChangeEventHandler(FileSystemEventHandler):
    """Wraps watchdog events for one watched directory into :class:`ChangeEvent`."""

    def __init__(self, directory: Path, sink: EventSink, *, recursive: bool = False):
        super().__init__()
        self._directory = Path(directory)
        self._recursive = recursive
        self._roots = (self._directory, self._directory.resolve())
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            for event_type, src in self._convert(event):
                name = self._relative_name(src)
                if name is None:
                    continue
                self._sink(ChangeEvent.capture(self._directory, name, event_type))
        except Exception:
            logger.exception("Error handling filesystem event %s", event)

    def _convert(self, event: FileSystemEvent) -> List[Tuple[EventType, str]]:
        if isinstance(event, (FileMovedEvent, DirMovedEvent)):
            return [(EventType.DELETED, _as_str(event.src_path)), (EventType.CREATED, _as_str(event.dest_path))]
        if isinstance(event, (FileCreatedEvent, DirCreatedEvent)):
            return [(EventType.CREATED, _as_str(event.src_path))]
        if isinstance(event, DirModifiedEvent) and self._recursive:
            # Only mirrors a change to one of its children, which is reported separately.
            return []
        if isinstance(event, (FileModifiedEvent, DirModifiedEvent)):
            return [(EventType.MODIFIED, _as_str(event.src_path))]
        if isinstance(event, (FileDeletedEvent, DirDeletedEvent)):
            return [(EventType.DELETED, _as_str(event.src_path))]
        return []

    def _relative_name(self, src: str) -> Optional[str]:
        # Observers may report the resolved path rather than the configured one.
        for root in self._roots:
            try:
                name = Path(src).relative_to(root).as_posix()
            except ValueError:
                continue
            return None if name in ("", ".") else name
        return None


class DirectoryWatcher:
    """Runs one observer with a pipeline target per configured directory."""

    def __init__(
        self,
        config: AppConfig,
        channels: Sequence[MessageChannel],
        *,
        observer_factory: Optional[Callable[[], object]] = None,
    ):
        self._config = config
        self._channels = list(channels)
        self._fanout = NotificationFanout(self._channels)
        self._narrator = EventNarrator(
            VOCABULARIES[config.narration.locale],
            timestamp_format=config.narration.timestamp_format,
        )
        self._stop_event = threading.Event()
        self.targets: List[WatchTarget] = [self._build_target(watch) for watch in config.watches]
        self._observer = observer_factory() if observer_factory is not None else self._create_observer()

    def run(self) -> None:
        """Watch until :meth:`stop` is called or the user interrupts."""

        for target, watch in zip(self.targets, self._config.watches):
            if not watch.path.is_dir():
                raise FileNotFoundError(f"Watched directory does not exist: {watch.path}")
            handler = ChangeEventHandler(watch.path, target.submit, recursive=watch.recursive)
            self._observer.schedule(handler, str(watch.path), recursive=watch.recursive)  # type: ignore[attr-defined]
            logger.info("Watching %s (recursive=%s)", watch.path, watch.recursive)

        self._observer.start()  # type: ignore[attr-defined]
        try:
            while not self._stop_event.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Watcher interrupted by user")
        finally:
            self._shutdown()

    def stop(self) -> None:
        """Signal the watcher to stop at the next opportunity."""

        self._stop_event.set()

    def _shutdown(self) -> None:
        self._observer.stop()  # type: ignore[attr-defined]
        self._observer.join()  # type: ignore[attr-defined]
        for target in self.targets:
            target.close()
        for channel in self._channels:
            shutdown = getattr(channel, "shutdown", None)
            if shutdown is not None:
                shutdown()
        logger.info("Watcher stopped")

    def _create_observer(self):
        observer_cfg = self._config.observer
        if observer_cfg.polling:
            return PollingObserver(timeout=observer_cfg.poll_interval)
        return Observer()

    def _build_target(self, watch: WatchConfig) -> WatchTarget:
        return WatchTarget(
            watch.path,
            self._narrator,
            self._fanout,
            matchers=[build_matcher(matcher) for matcher in watch.matchers],
            exclude_patterns=watch.exclude_patterns,
            quiet_period=watch.quiet_period,
            repeat_period=watch.repeat_period,
            repeat_count=watch.repeat_count,
        )


def _as_str(path) -> str:
    if isinstance(path, bytes):
        return path.decode()
    return str(path)
