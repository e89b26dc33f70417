"""Single-slot debounce helper used by the sync scheduler."""

from __future__ import annotations

from typing import Callable

from .clock import TimerFacility, TimerHandle


class Debouncer:
    """Utility that coalesces rapid-fire submissions into a single callback run."""

    def __init__(self, timers: TimerFacility) -> None:
        self._timers = timers
        self._handle: TimerHandle | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        """Whether a callback is armed and has not fired yet."""

        return self._handle is not None

    def submit(self, delay: float, callback: Callable[[], None]) -> None:
        """Schedule a callback, cancelling any pending invocation."""

        self.cancel()
        generation = self._generation

        def _fire() -> None:
            # A replaced or cancelled timer must never run its callback.
            if generation != self._generation:
                return
            self._handle = None
            self._generation += 1
            callback()

        try:
            self._handle = self._timers.call_later(delay, _fire)
        except BaseException:
            self._handle = None
            self._generation += 1
            raise

    def cancel(self) -> bool:
        """Cancel any pending invocation; returns whether one was pending."""

        self._generation += 1
        if self._handle is None:
            return False
        handle, self._handle = self._handle, None
        handle.cancel()
        return True


__all__ = ["Debouncer"]
