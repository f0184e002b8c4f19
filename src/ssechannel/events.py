"""Lifecycle notifications emitted by a channel.

Observers register per kind::

    unsubscribe = channel.events.subscribe("message", on_message)
    ...
    unsubscribe()

A callback receives one event object. Errors raised by a callback are logged
and swallowed so a broken observer never breaks fan-out.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Literal

logger = logging.getLogger(__name__)

EventKind = Literal["connect", "disconnect", "message"]
KINDS = ("connect", "disconnect", "message")


@dataclass(frozen=True)
class ConnectEvent:
    request: Any
    response: Any
    kind: str = "connect"


@dataclass(frozen=True)
class DisconnectEvent:
    channel: Any
    connection: Any
    kind: str = "disconnect"


@dataclass(frozen=True)
class MessageEvent:
    channel: Any
    message: Any
    recipients: list
    kind: str = "message"


ChannelEvent = ConnectEvent | DisconnectEvent | MessageEvent
Observer = Callable[[ChannelEvent], None]


class EventHub:
    def __init__(self):
        self._observers: dict[str, list[Observer]] = defaultdict(list)

    def subscribe(self, kind: EventKind, callback: Observer) -> Callable[[], None]:
        if kind not in KINDS:
            raise ValueError(f"Unknown event kind: {kind}")
        self._observers[kind].append(callback)
        return lambda: self.unsubscribe(kind, callback)

    def unsubscribe(self, kind: EventKind, callback: Observer) -> bool:
        observers = self._observers.get(kind)
        if not observers or callback not in observers:
            return False
        observers.remove(callback)
        return True

    def observer_count(self, kind: EventKind) -> int:
        return len(self._observers.get(kind, []))

    def emit(self, event: ChannelEvent) -> None:
        for callback in list(self._observers.get(event.kind, [])):
            try:
                callback(event)
            except Exception:
                logger.exception("Observer for %s event failed", event.kind)
