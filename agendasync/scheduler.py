"""Debounced scheduling of automatic syncs after watched files change."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Iterable, Union

from .clock import LoopTimerFacility, TimerFacility
from .config import DEFAULT_IDLE_SECONDS
from .debounce import Debouncer
from .models import AUTOMATIC_SYNC, SchedulerState, SyncInProgressError, SyncOptions, SyncTrigger
from .sync import SyncOperation

LOG = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def normalize_path(path: PathLike) -> str:
    """Expand ``~`` and resolve to an absolute path for watch-list comparisons."""

    return str(Path(os.fsdecode(path)).expanduser().resolve())


class DebounceScheduler:
    """Arms one timer per burst of in-scope changes and syncs when it fires."""

    def __init__(
        self,
        operation: SyncOperation,
        *,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        watched_paths: Iterable[PathLike] = (),
        timers: TimerFacility | None = None,
        options: SyncOptions = AUTOMATIC_SYNC,
    ) -> None:
        if idle_seconds < 0:
            raise ValueError("idle_seconds must be non-negative")
        self._operation = operation
        self._idle_seconds = idle_seconds
        self._watched = frozenset(normalize_path(path) for path in watched_paths)
        self._debouncer = Debouncer(timers or LoopTimerFacility())
        self._options = options
        self._tasks: set[asyncio.Task[object]] = set()

    @property
    def idle_seconds(self) -> float:
        return self._idle_seconds

    @property
    def watched_paths(self) -> frozenset[str]:
        return self._watched

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.ARMED if self._debouncer.pending else SchedulerState.IDLE

    @property
    def armed(self) -> bool:
        return self._debouncer.pending

    def matching_paths(self, paths: PathLike | Iterable[PathLike]) -> set[str]:
        """Return the subset of ``paths`` that is on the watch-list."""

        if isinstance(paths, (str, bytes, os.PathLike)):
            paths = (paths,)
        return {normalize_path(path) for path in paths} & self._watched

    def on_change_event(self, paths: PathLike | Iterable[PathLike]) -> bool:
        """Arm the idle timer when any changed path is watched."""

        matched = self.matching_paths(paths)
        if not matched:
            LOG.debug("Ignoring change outside the watch-list")
            return False
        LOG.debug("Watched file changed", extra={"paths": sorted(matched)})
        self.arm(self._idle_seconds)
        return True

    def arm(self, duration: float | None = None) -> None:
        """Replace any pending timer with one firing after ``duration`` seconds."""

        delay = self._idle_seconds if duration is None else duration
        self._debouncer.submit(delay, self._fire)
        LOG.debug("Sync timer armed", extra={"delay": delay})

    def cancel(self) -> bool:
        """Drop the pending timer if there is one; returns whether one was armed."""

        cancelled = self._debouncer.cancel()
        if cancelled:
            LOG.debug("Sync timer cancelled")
        return cancelled

    def _fire(self) -> None:
        LOG.info("Idle period elapsed; running automatic sync")
        if self._operation.is_async:
            task = asyncio.get_running_loop().create_task(
                self._operation.arun(self._options, trigger=SyncTrigger.DEBOUNCE)
            )
            self._tasks.add(task)
            task.add_done_callback(self._task_done)
            return
        try:
            self._operation.run(self._options, trigger=SyncTrigger.DEBOUNCE)
        except SyncInProgressError:
            LOG.debug("Skipping automatic sync; another sync is running")

    def _task_done(self, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if isinstance(exc, SyncInProgressError):
            LOG.debug("Skipping automatic sync; another sync is running")
        elif exc is not None:
            LOG.error("Automatic sync failed", exc_info=exc)


__all__ = ["DebounceScheduler", "PathLike", "normalize_path"]
