"""Event publishing for the stabilization engine.

The engine only depends on the :class:`Publisher` capability.  :class:`EventBus`
is the in-process implementation used by :class:`~pygeofix.service.LocationService`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from pygeofix.models.events import EngineEvent, EventKind

_logger = logging.getLogger(__name__)

Subscriber = Callable[[EngineEvent], None]


class Publisher(Protocol):
    def publish(self, event: EngineEvent) -> None: ...


class EventBus:
    """Synchronous pub/sub for :data:`EngineEvent`.

    Subscribers register for one :class:`EventKind` or, with ``kind=None``,
    for every event.  A subscriber that raises is logged and skipped; it
    never prevents delivery to the others or breaks the publisher.
    """

    def __init__(self) -> None:
        self._subscribers: dict[EventKind | None, list[Subscriber]] = {}

    def subscribe(self, callback: Subscriber, kind: EventKind | None = None) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        self._subscribers.setdefault(kind, []).append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback, kind)

        return _unsubscribe

    def unsubscribe(self, callback: Subscriber, kind: EventKind | None = None) -> None:
        pending = self._subscribers.get(kind)
        if not pending:
            return
        self._subscribers[kind] = [cb for cb in pending if cb is not callback]
        if not self._subscribers[kind]:
            self._subscribers.pop(kind, None)

    def once(self, callback: Subscriber, kind: EventKind | None = None) -> Callable[[], None]:
        """Register *callback* for a single delivery."""

        def _once(event: EngineEvent) -> None:
            self.unsubscribe(_once, kind)
            callback(event)

        return self.subscribe(_once, kind)

    def publish(self, event: EngineEvent) -> None:
        targets = [*self._subscribers.get(event.kind, ()), *self._subscribers.get(None, ())]
        for callback in targets:
            try:
                callback(event)
            except Exception:
                _logger.warning("Subscriber %r failed handling %s", callback, event.kind, exc_info=True)
