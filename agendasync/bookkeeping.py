"""Completion bookkeeping shared by the scheduler and the cooldown gate."""

from __future__ import annotations

import logging
import math
from typing import Callable

from .clock import Clock, MonotonicClock
from .models import SyncCompletion
from .scheduler import DebounceScheduler
from .sync import SyncOperation

LOG = logging.getLogger(__name__)


class SyncBookkeeper:
    """Records when the last sync returned and disarms redundant timers.

    Every completion counts, failed ones included, so a sync that rewrites
    watched files cannot re-arm the scheduler into a loop.
    """

    def __init__(self, scheduler: DebounceScheduler | None = None, *, clock: Clock | None = None) -> None:
        self._scheduler = scheduler
        self._clock = clock or MonotonicClock()
        self._last_sync_at: float | None = None
        self._last_completion: SyncCompletion | None = None

    @property
    def last_sync_at(self) -> float | None:
        """Clock time of the most recent completed sync, ``None`` before the first."""

        return self._last_sync_at

    @property
    def last_completion(self) -> SyncCompletion | None:
        return self._last_completion

    def elapsed(self) -> float:
        """Seconds since the last sync; infinite when no sync has completed."""

        if self._last_sync_at is None:
            return math.inf
        return self._clock.now() - self._last_sync_at

    def after_sync_completes(self, completion: SyncCompletion | None = None) -> None:
        self._last_sync_at = self._clock.now()
        self._last_completion = completion
        if self._scheduler is not None and self._scheduler.cancel():
            LOG.debug("Dropped pending sync timer after completed sync")

    def attach(self, operation: SyncOperation) -> Callable[[], None]:
        """Install as a post-hook on ``operation``; returns the detach handle."""

        return operation.subscribe(self.after_sync_completes)


__all__ = ["SyncBookkeeper"]
