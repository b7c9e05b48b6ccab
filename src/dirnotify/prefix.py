"""Prefix prepended to outgoing messages by channels that want one."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

DEFAULT_PREFIX_TEXT = "File Watcher"
DEFAULT_PREFIX_TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"


class MessagePrefix:
    """Renders ``"<now> : <text> : "``, or ``"<text> : "`` without a format."""

    def __init__(
        self,
        text: str = DEFAULT_PREFIX_TEXT,
        timestamp_format: Optional[str] = DEFAULT_PREFIX_TIMESTAMP_FORMAT,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if text is None or not text.strip():
            raise ValueError("Prefix text cannot be empty")
        self._text = text
        self._timestamp_format = timestamp_format
        self._clock = clock

    def render(self) -> str:
        if self._timestamp_format is None:
            return f"{self._text} : "
        return f"{self._clock().strftime(self._timestamp_format)} : {self._text} : "

    def apply(self, message: str) -> str:
        return self.render() + message
