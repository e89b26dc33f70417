"""Deterministic clock and timer fakes shared by the scheduler tests."""

from __future__ import annotations

from typing import Callable

import pytest


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.current = start

    def now(self) -> float:
        return self.current


class FakeTimerHandle:
    def __init__(self, due: float, delay: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Timer facility whose timers only fire when ``advance`` moves the clock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self.handles: list[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(self._clock.now() + delay, delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [handle for handle in self.handles if not handle.cancelled and not handle.fired]

    def advance(self, seconds: float) -> None:
        target = self._clock.now() + seconds
        while True:
            due = sorted((h for h in self.pending if h.due <= target), key=lambda h: h.due)
            if not due:
                break
            handle = due[0]
            self._clock.current = max(self._clock.current, handle.due)
            handle.fired = True
            handle.callback()
        self._clock.current = target

    def advance_to(self, moment: float) -> None:
        self.advance(moment - self._clock.now())


class RecordingSync:
    """Sync routine stub that records the options and clock time of each call."""

    def __init__(self, clock: FakeClock, error: Exception | None = None) -> None:
        self._clock = clock
        self.error = error
        self.calls: list[tuple[float, object]] = []
        self.before_return: Callable[[], None] | None = None

    def __call__(self, options):  # type: ignore[no-untyped-def]
        self.calls.append((self._clock.now(), options))
        if self.before_return is not None:
            self.before_return()
        if self.error is not None:
            raise self.error
        return "ok"

    @property
    def times(self) -> list[float]:
        return [moment for moment, _ in self.calls]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers(clock: FakeClock) -> ManualTimers:
    return ManualTimers(clock)


@pytest.fixture
def routine(clock: FakeClock) -> RecordingSync:
    return RecordingSync(clock)


class ObserverStub:
    """Stands in for a watchdog observer; records scheduled handlers."""

    def __init__(self) -> None:
        self.scheduled: list[tuple[object, str, bool]] = []
        self.daemon = False
        self.started = False
        self.stopped = False

    def schedule(self, handler, path, recursive=False):  # type: ignore[no-untyped-def]
        self.scheduled.append((handler, path, recursive))

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout=None) -> None:  # type: ignore[no-untyped-def]
        return None

    @property
    def handler(self):  # type: ignore[no-untyped-def]
        return self.scheduled[0][0]


@pytest.fixture
def observer() -> ObserverStub:
    return ObserverStub()
