"""Fan-out of a notification message to every configured channel."""
from __future__ import annotations

import logging
from typing import Iterable, List, Protocol

logger = logging.getLogger(__name__)


class MessageChannel(Protocol):
    """Anything that can deliver a text message somewhere."""

    def deliver(self, message: str) -> None:
        ...


class NotificationFanout:
    """Delivers each message to all channels, isolating channel failures."""

    def __init__(self, channels: Iterable[MessageChannel]):
        if channels is None:
            raise TypeError("Channel list must not be None")
        self._channels: List[MessageChannel] = list(channels)

    @property
    def channels(self) -> List[MessageChannel]:
        return list(self._channels)

    def dispatch(self, message: str) -> None:
        if message is None:
            raise TypeError("message must not be None")
        if not self._channels:
            logger.warning("No notification channels configured; dropping message: %r", message)
            return
        for channel in self._channels:
            self._safe_deliver(channel, message)

    def _safe_deliver(self, channel: MessageChannel, message: str) -> None:
        try:
            channel.deliver(message)
        except Exception:
            logger.exception("Channel %s failed to deliver message", _channel_name(channel))


def _channel_name(channel: MessageChannel) -> str:
    return getattr(channel, "name", None) or type(channel).__name__
