"""Cooldown gate that refreshes data before a guarded read."""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, TypeVar

from .bookkeeping import SyncBookkeeper
from .config import DEFAULT_AGENDA_COOLDOWN_SECONDS
from .models import INTERACTIVE_SYNC, SyncInProgressError, SyncOptions, SyncTrigger
from .sync import SyncOperation

LOG = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class CooldownGate:
    """Forces a blocking sync before a read when the last one is too old."""

    def __init__(
        self,
        operation: SyncOperation,
        bookkeeper: SyncBookkeeper,
        *,
        cooldown_seconds: float = DEFAULT_AGENDA_COOLDOWN_SECONDS,
        enabled: bool = True,
        options: SyncOptions = INTERACTIVE_SYNC,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be non-negative")
        self._operation = operation
        self._bookkeeper = bookkeeper
        self._cooldown_seconds = cooldown_seconds
        self._enabled = enabled
        self._options = options

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown_seconds

    def elapsed(self) -> float:
        return self._bookkeeper.elapsed()

    def is_due(self) -> bool:
        """Whether the next guarded read would trigger a sync."""

        return self._enabled and self.elapsed() > self._cooldown_seconds

    def before_guarded_read(self) -> bool:
        """Sync first if the cooldown has expired; returns whether a sync ran.

        A failing sync is logged and the read is allowed to proceed.
        """

        if not self._enabled:
            return False
        if not self.is_due():
            LOG.debug("Skipping pre-read sync; cooldown not expired")
            return False
        if self._operation.is_async:
            raise TypeError("Sync routine is asynchronous; use abefore_guarded_read()")
        try:
            self._operation.run(self._options, trigger=SyncTrigger.AGENDA)
        except SyncInProgressError:
            LOG.debug("Skipping pre-read sync; another sync is running")
            return False
        except Exception:
            LOG.exception("Pre-read sync failed; continuing with read")
        return True

    async def abefore_guarded_read(self) -> bool:
        """Async variant of :meth:`before_guarded_read`."""

        if not self._enabled:
            return False
        if not self.is_due():
            LOG.debug("Skipping pre-read sync; cooldown not expired")
            return False
        try:
            await self._operation.arun(self._options, trigger=SyncTrigger.AGENDA)
        except SyncInProgressError:
            LOG.debug("Skipping pre-read sync; another sync is running")
            return False
        except Exception:
            LOG.exception("Pre-read sync failed; continuing with read")
        return True

    def guard(self, read_fn: F) -> F:
        """Wrap ``read_fn`` so the gate runs before every call."""

        return guard_with(read_fn, self.before_guarded_read, self.abefore_guarded_read)


def guard_with(
    read_fn: F,
    before: Callable[[], object],
    abefore: Callable[[], Any],
) -> F:
    """Build a wrapper running ``before`` (or awaiting ``abefore``) ahead of ``read_fn``."""

    if inspect.iscoroutinefunction(read_fn):

        @functools.wraps(read_fn)
        async def _async_guarded(*args: Any, **kwargs: Any) -> Any:
            await abefore()
            return await read_fn(*args, **kwargs)

        return _async_guarded  # type: ignore[return-value]

    @functools.wraps(read_fn)
    def _guarded(*args: Any, **kwargs: Any) -> Any:
        before()
        return read_fn(*args, **kwargs)

    return _guarded  # type: ignore[return-value]


__all__ = ["CooldownGate", "guard_with"]
