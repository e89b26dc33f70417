"""Clock and delayed-action primitives the scheduler is built on."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Monotonic time source measured in seconds."""

    def now(self) -> float:
        """Return the current monotonic time."""


@runtime_checkable
class TimerHandle(Protocol):
    """Handle to a delayed action that has not fired yet."""

    def cancel(self) -> None:
        """Prevent the action from firing; safe to call more than once."""


@runtime_checkable
class TimerFacility(Protocol):
    """Arms one-shot delayed actions."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class MonotonicClock:
    """Clock backed by :func:`time.monotonic`."""

    def now(self) -> float:
        return time.monotonic()


class LoopTimerFacility:
    """Timer facility that schedules callbacks on an asyncio event loop.

    Callbacks always run on the loop thread, so cancelling a handle before
    arming its replacement guarantees the old one never fires.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


__all__ = [
    "Clock",
    "LoopTimerFacility",
    "MonotonicClock",
    "TimerFacility",
    "TimerHandle",
]
