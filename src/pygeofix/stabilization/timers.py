"""Cancellable timers for the state machine.

The machine never sleeps; every wait is a callback scheduled through a
:class:`Scheduler`.  Production code uses the running asyncio loop; replays and
tests use the virtual clock of :class:`ManualScheduler`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Protocol

_logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of delayed callbacks and of the matching clock."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...

    def time(self) -> float:
        """Monotonic time in seconds, on the same clock as ``call_later``."""
        ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop.

    When no loop is given the running loop is looked up on first use, so
    the scheduler can be created outside of a coroutine.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._require_loop().call_later(delay, callback)

    def time(self) -> float:
        return self._require_loop().time()


class TimerPurpose(StrEnum):
    FAST_ACQUISITION = "fast_acquisition"
    STABILIZATION = "stabilization"


class TimerSlots:
    """At most one live timer per :class:`TimerPurpose`.

    Arming a purpose always cancels the previous handle of that purpose
    first.  Each arm gets a fresh token; a callback whose token no longer
    owns the slot is discarded, so a cancelled timer can never apply effects
    even if the underlying scheduler already queued it.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._tokens = itertools.count(1)
        self._slots: dict[TimerPurpose, tuple[int, Cancellable]] = {}

    def is_armed(self, purpose: TimerPurpose) -> bool:
        return purpose in self._slots

    def arm(self, purpose: TimerPurpose, delay: float, callback: Callable[[], None]) -> None:
        self.cancel(purpose)
        token = next(self._tokens)
        handle = self._scheduler.call_later(delay, lambda: self._fire(purpose, token, callback))
        self._slots[purpose] = (token, handle)
        _logger.debug("Armed %s timer token=%d delay=%.3fs", purpose, token, delay)

    def cancel(self, purpose: TimerPurpose) -> None:
        slot = self._slots.pop(purpose, None)
        if slot is None:
            return
        token, handle = slot
        handle.cancel()
        _logger.debug("Cancelled %s timer token=%d", purpose, token)

    def cancel_all(self) -> None:
        for purpose in list(self._slots):
            self.cancel(purpose)

    def _fire(self, purpose: TimerPurpose, token: int, callback: Callable[[], None]) -> None:
        slot = self._slots.get(purpose)
        if slot is None or slot[0] != token:
            _logger.debug("Ignoring stale %s timer token=%d", purpose, token)
            return
        del self._slots[purpose]
        callback()


@dataclasses.dataclass
class _ManualHandle:
    when_ms: int
    seq: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock driven explicitly through :meth:`advance_ms`.

    Used to replay captured sessions and in tests.  Time is kept in integer
    milliseconds so "exactly N ms later" is exact; callbacks due at the same
    instant run in the order they were scheduled.
    """

    def __init__(self, start_ms: int = 0) -> None:
        self.now_ms = start_ms
        self._seq = itertools.count()
        self._handles: list[_ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(when_ms=self.now_ms + round(delay * 1000), seq=next(self._seq), callback=callback)
        self._handles.append(handle)
        return handle

    def time(self) -> float:
        return self.now_ms / 1000.0

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance_ms(self, ms: int) -> None:
        """Move the clock forward, running every callback that falls due."""
        target = self.now_ms + ms
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when_ms <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when_ms, h.seq))
            self._handles.remove(handle)
            self.now_ms = handle.when_ms
            handle.callback()
        self._handles = [h for h in self._handles if not h.cancelled]
        self.now_ms = target
