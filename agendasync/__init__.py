"""Debounce-and-cooldown scheduling for an external calendar sync."""

from __future__ import annotations

from .bookkeeping import SyncBookkeeper
from .clock import Clock, LoopTimerFacility, MonotonicClock, TimerFacility, TimerHandle
from .config import ScheduleConfig, load_config, save_config
from .debounce import Debouncer
from .gate import CooldownGate
from .mode import AutoSyncMode, ChangeSource
from .models import (
    AUTOMATIC_SYNC,
    INTERACTIVE_SYNC,
    AgendaSyncError,
    DeletionPolicy,
    SchedulerState,
    SyncCompletion,
    SyncInProgressError,
    SyncOptions,
    SyncTrigger,
)
from .scheduler import DebounceScheduler, normalize_path
from .sync import SyncOperation

__version__ = "0.1.0"

__all__ = [
    "AUTOMATIC_SYNC",
    "AgendaSyncError",
    "AutoSyncMode",
    "ChangeSource",
    "Clock",
    "CooldownGate",
    "DebounceScheduler",
    "Debouncer",
    "DeletionPolicy",
    "INTERACTIVE_SYNC",
    "LoopTimerFacility",
    "MonotonicClock",
    "ScheduleConfig",
    "SchedulerState",
    "SyncBookkeeper",
    "SyncCompletion",
    "SyncInProgressError",
    "SyncOperation",
    "SyncOptions",
    "SyncTrigger",
    "TimerFacility",
    "TimerHandle",
    "__version__",
    "load_config",
    "normalize_path",
    "save_config",
]
