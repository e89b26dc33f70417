"""Global auto-sync toggle wiring the scheduler, gate and post-hook together."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, Protocol, Sequence, TypeVar

from .bookkeeping import SyncBookkeeper
from .clock import Clock, MonotonicClock, TimerFacility
from .config import ScheduleConfig, load_config
from .gate import CooldownGate, guard_with
from .models import INTERACTIVE_SYNC, SchedulerState, SyncCompletion, SyncOptions, SyncTrigger
from .scheduler import DebounceScheduler, PathLike
from .sync import SyncOperation, SyncRoutine

LOG = logging.getLogger(__name__)

ChangeListener = Callable[[Sequence[str]], object]

F = TypeVar("F", bound=Callable[..., Any])


class ChangeSource(Protocol):
    """Producer of file-change notifications."""

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to change events; returns an unsubscribe handle."""


class AutoSyncMode:
    """Switchable auto-sync feature.

    While enabled, watched-file changes debounce into an automatic sync,
    guarded reads run behind the cooldown gate, and every completed sync is
    recorded. Disabling cancels the pending timer and detaches all hooks.
    """

    def __init__(
        self,
        routine: SyncRoutine | SyncOperation,
        *,
        config: ScheduleConfig | None = None,
        clock: Clock | None = None,
        timers: TimerFacility | None = None,
        settle_seconds: float = 0.0,
    ) -> None:
        if settle_seconds < 0:
            raise ValueError("settle_seconds must be non-negative")
        self._config = config or ScheduleConfig()
        self._clock = clock or MonotonicClock()
        if isinstance(routine, SyncOperation):
            self._operation = routine
        else:
            self._operation = SyncOperation(routine, clock=self._clock)
        self._scheduler = DebounceScheduler(
            self._operation,
            idle_seconds=self._config.idle_seconds,
            watched_paths=self._config.watched_paths,
            timers=timers,
        )
        self._bookkeeper = SyncBookkeeper(self._scheduler, clock=self._clock)
        self._gate = CooldownGate(
            self._operation,
            self._bookkeeper,
            cooldown_seconds=self._config.agenda_cooldown_seconds,
            enabled=self._config.agenda_gating_enabled,
        )
        self._sources: list[ChangeSource] = []
        self._detach: list[Callable[[], None]] = []
        self._settle_seconds = settle_seconds
        self._settle_handle: asyncio.Handle | None = None
        self._enabled = False

    @classmethod
    def from_config(
        cls,
        routine: SyncRoutine | SyncOperation,
        config: ScheduleConfig | None = None,
        **kwargs: Any,
    ) -> AutoSyncMode:
        """Build a mode from ``config`` (or the config file), enabling it if configured."""

        config = config or load_config()
        mode = cls(routine, config=config, **kwargs)
        if config.enabled:
            mode.enable()
        return mode

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def config(self) -> ScheduleConfig:
        return self._config

    @property
    def operation(self) -> SyncOperation:
        return self._operation

    @property
    def scheduler(self) -> DebounceScheduler:
        return self._scheduler

    @property
    def gate(self) -> CooldownGate:
        return self._gate

    @property
    def bookkeeper(self) -> SyncBookkeeper:
        return self._bookkeeper

    @property
    def state(self) -> SchedulerState:
        return self._scheduler.state

    @property
    def last_sync_at(self) -> float | None:
        return self._bookkeeper.last_sync_at

    def add_change_source(self, source: ChangeSource) -> None:
        """Register a change producer; it is only listened to while enabled."""

        self._sources.append(source)
        if self._enabled:
            self._detach.append(source.subscribe(self.on_change_event))

    def enable(self) -> None:
        """Attach the post-hook and change listeners; idempotent."""

        if self._enabled:
            return
        self._detach.append(self._operation.subscribe(self._on_sync_completed))
        for source in self._sources:
            self._detach.append(source.subscribe(self.on_change_event))
        self._enabled = True
        LOG.info(
            "Auto-sync enabled",
            extra={
                "idle_seconds": self._config.idle_seconds,
                "agenda_cooldown_seconds": self._config.agenda_cooldown_seconds,
            },
        )

    def disable(self) -> None:
        """Cancel pending work and detach every hook; idempotent."""

        if not self._enabled:
            return
        self._scheduler.cancel()
        self._release_changes()
        while self._detach:
            self._detach.pop()()
        self._enabled = False
        LOG.info("Auto-sync disabled")

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.enable()
        else:
            self.disable()

    def toggle(self) -> bool:
        """Flip the mode and return the new state."""

        self.set_enabled(not self._enabled)
        return self._enabled

    def on_change_event(self, paths: PathLike | Iterable[PathLike]) -> bool:
        """Forward a change notification to the scheduler while enabled."""

        if not self._enabled:
            return False
        if self._settle_handle is not None:
            LOG.debug("Ignoring change delivered while the last sync settles")
            return False
        return self._scheduler.on_change_event(paths)

    def before_guarded_read(self) -> bool:
        """Run the cooldown gate while enabled; returns whether a sync ran."""

        if not self._enabled:
            return False
        return self._gate.before_guarded_read()

    async def abefore_guarded_read(self) -> bool:
        if not self._enabled:
            return False
        return await self._gate.abefore_guarded_read()

    def guard(self, read_fn: F) -> F:
        """Wrap a read so it passes through the gate whenever the mode is on."""

        return guard_with(read_fn, self.before_guarded_read, self.abefore_guarded_read)

    def sync_now(self, options: SyncOptions = INTERACTIVE_SYNC) -> Any:
        """Run a manual sync immediately."""

        return self._operation.run(options, trigger=SyncTrigger.DIRECT)

    async def async_sync_now(self, options: SyncOptions = INTERACTIVE_SYNC) -> Any:
        return await self._operation.arun(options, trigger=SyncTrigger.DIRECT)

    @property
    def settling(self) -> bool:
        """Whether change events are held back after a sync completed."""

        return self._settle_handle is not None

    def _on_sync_completed(self, completion: SyncCompletion) -> None:
        self._bookkeeper.after_sync_completes(completion)
        self._hold_changes()

    def _hold_changes(self) -> None:
        # Watcher threads queue events with call_soon_threadsafe while a
        # blocking sync runs; those land after this hook, so the release is
        # queued behind them.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._release_changes()
        if self._settle_seconds > 0:
            self._settle_handle = loop.call_later(self._settle_seconds, self._release_changes)
        else:
            self._settle_handle = loop.call_soon(self._release_changes)

    def _release_changes(self) -> None:
        handle, self._settle_handle = self._settle_handle, None
        if handle is not None:
            handle.cancel()


__all__ = ["AutoSyncMode", "ChangeListener", "ChangeSource"]
