"""Wrapper around the external sync routine that notifies completion listeners."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from .clock import Clock, MonotonicClock
from .models import INTERACTIVE_SYNC, SyncCompletion, SyncInProgressError, SyncOptions, SyncTrigger

LOG = logging.getLogger(__name__)

SyncRoutine = Callable[[SyncOptions], Any]
SyncListener = Callable[[SyncCompletion], None]


class SyncOperation:
    """Runs the sync routine and reports every completion to subscribers.

    Listeners fire exactly once per invocation, after the routine returns or
    raises, no matter who called it. Errors are re-raised after listeners run;
    a failing listener is logged and never masks the routine's own error.
    """

    def __init__(self, routine: SyncRoutine, *, clock: Clock | None = None) -> None:
        self._routine = routine
        self._clock = clock or MonotonicClock()
        self._listeners: list[SyncListener] = []
        self._running = False

    @property
    def is_async(self) -> bool:
        """Whether the routine must be awaited (use :meth:`arun`)."""

        routine = self._routine
        return inspect.iscoroutinefunction(routine) or inspect.iscoroutinefunction(
            getattr(routine, "__call__", None)
        )

    @property
    def running(self) -> bool:
        return self._running

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Register a completion listener; returns an unsubscribe handle."""

        if listener not in self._listeners:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def run(self, options: SyncOptions = INTERACTIVE_SYNC, *, trigger: SyncTrigger = SyncTrigger.DIRECT) -> Any:
        """Invoke a synchronous routine and block until it returns."""

        self._begin(options, trigger)
        result: Any = None
        error: BaseException | None = None
        try:
            result = self._routine(options)
            if inspect.iscoroutine(result):
                result.close()
                result = None
                raise TypeError("Sync routine is asynchronous; call arun() instead")
            return result
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._finish(options, trigger, result, error)

    async def arun(
        self,
        options: SyncOptions = INTERACTIVE_SYNC,
        *,
        trigger: SyncTrigger = SyncTrigger.DIRECT,
    ) -> Any:
        """Invoke the routine, awaiting its result when it is awaitable."""

        self._begin(options, trigger)
        result: Any = None
        error: BaseException | None = None
        try:
            result = self._routine(options)
            if inspect.isawaitable(result):
                result = await result
            return result
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._finish(options, trigger, result, error)

    __call__ = run

    def _begin(self, options: SyncOptions, trigger: SyncTrigger) -> None:
        if self._running:
            raise SyncInProgressError(f"Sync requested by {trigger.value} while another sync is running")
        self._running = True
        LOG.info("Sync started", extra={"trigger": trigger.value, "quiet": options.quiet})

    def _finish(
        self,
        options: SyncOptions,
        trigger: SyncTrigger,
        result: Any,
        error: BaseException | None,
    ) -> None:
        self._running = False
        completion = SyncCompletion(
            options=options,
            trigger=trigger,
            finished_at=self._clock.now(),
            result=result,
            error=error,
        )
        if error is None:
            LOG.info("Sync finished", extra={"trigger": trigger.value})
        else:
            LOG.warning("Sync failed", extra={"trigger": trigger.value, "error": repr(error)})
        for listener in tuple(self._listeners):
            try:
                listener(completion)
            except Exception:
                LOG.exception("Sync completion listener failed", extra={"trigger": trigger.value})


__all__ = ["SyncListener", "SyncOperation", "SyncRoutine"]
