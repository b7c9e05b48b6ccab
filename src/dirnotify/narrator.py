"""Turns change events into human-readable notification lines."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Tuple

from .events import ChangeEvent, EventType

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class EntryKind(str, Enum):
    """What the affected entry turned out to be at narration time."""

    FILE = "file"
    DIRECTORY = "directory"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Vocabulary:
    """Words used to describe an event.

    ``phrases`` is keyed by entry kind and event type so languages with
    grammatical gender can agree the verb with the noun.
    """

    nouns: Dict[EntryKind, str]
    phrases: Dict[Tuple[EntryKind, EventType], str]
    template: str
    unknown_phrase: str = "changed"

    def noun(self, kind: EntryKind) -> str:
        return self.nouns[kind]

    def phrase(self, kind: EntryKind, event_type: EventType) -> str:
        return self.phrases.get((kind, event_type), self.unknown_phrase)


ENGLISH = Vocabulary(
    nouns={
        EntryKind.FILE: "File",
        EntryKind.DIRECTORY: "Folder",
        EntryKind.UNKNOWN: "Object",
    },
    phrases={
        (EntryKind.FILE, EventType.CREATED): "was created",
        (EntryKind.FILE, EventType.MODIFIED): "was modified",
        (EntryKind.DIRECTORY, EventType.CREATED): "was created",
        (EntryKind.DIRECTORY, EventType.MODIFIED): "was modified",
        (EntryKind.UNKNOWN, EventType.DELETED): "was deleted",
    },
    template="{noun} {name} in folder {directory} {phrase}. Event time: {time}",
    unknown_phrase="was changed",
)

RUSSIAN = Vocabulary(
    nouns={
        EntryKind.FILE: "Файл",
        EntryKind.DIRECTORY: "Папка",
        EntryKind.UNKNOWN: "Объект",
    },
    phrases={
        (EntryKind.FILE, EventType.CREATED): "был создан",
        (EntryKind.FILE, EventType.MODIFIED): "был изменен",
        (EntryKind.DIRECTORY, EventType.CREATED): "была создана",
        (EntryKind.DIRECTORY, EventType.MODIFIED): "была изменена",
        (EntryKind.UNKNOWN, EventType.DELETED): "был удален",
    },
    template="{noun} {name} в папке {directory} {phrase}. Время события: {time}",
    unknown_phrase="неизвестное событие",
)

VOCABULARIES: Dict[str, Vocabulary] = {"en": ENGLISH, "ru": RUSSIAN}


class EventNarrator:
    """Builds a one-line description of a :class:`ChangeEvent`."""

    def __init__(
        self,
        vocabulary: Vocabulary = ENGLISH,
        *,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
        is_directory: Callable[[Path], bool] = Path.is_dir,
    ):
        self._vocabulary = vocabulary
        self._timestamp_format = timestamp_format
        self._is_directory = is_directory

    def classify(self, event: ChangeEvent) -> EntryKind:
        # A deleted path always looks like a non-directory, so don't look.
        if event.event_type is EventType.DELETED:
            return EntryKind.UNKNOWN
        if self._is_directory(event.path):
            return EntryKind.DIRECTORY
        return EntryKind.FILE

    def narrate(self, event: ChangeEvent) -> str:
        if event is None:
            raise TypeError("event must not be None")
        kind = self.classify(event)
        message = self._vocabulary.template.format(
            noun=self._vocabulary.noun(kind),
            name=_single_line(event.name),
            directory=_single_line(str(event.watch_path.absolute())),
            phrase=self._vocabulary.phrase(kind, event.event_type),
            time=event.captured_at.strftime(self._timestamp_format),
        )
        logger.debug("Narrated %s as %r", event, message)
        return message.rstrip()


def _single_line(text: str) -> str:
    """Escape control characters so a name cannot break the message across lines."""

    return "".join(
        char if char.isprintable() else char.encode("unicode_escape").decode("ascii")
        for char in text
    )
