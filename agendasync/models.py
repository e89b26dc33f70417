"""Shared dataclasses and enums used across the scheduling modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DeletionPolicy(str, Enum):
    """How the sync routine should resolve deletions it discovers."""

    SILENT = "silent"


class SyncTrigger(str, Enum):
    """What caused a sync invocation."""

    DEBOUNCE = "debounce"
    AGENDA = "agenda"
    DIRECT = "direct"


class SchedulerState(str, Enum):
    """Debounce slot state."""

    IDLE = "idle"
    ARMED = "armed"


@dataclass(frozen=True, slots=True)
class SyncOptions:
    """Overrides handed to the sync routine.

    ``None``/``False`` fields mean "use the routine's own default".
    """

    deletion_policy: DeletionPolicy | None = None
    quiet: bool = False

    @property
    def is_default(self) -> bool:
        return self.deletion_policy is None and not self.quiet


AUTOMATIC_SYNC = SyncOptions(deletion_policy=DeletionPolicy.SILENT, quiet=True)
INTERACTIVE_SYNC = SyncOptions()


@dataclass(frozen=True, slots=True)
class SyncCompletion:
    """Record delivered to listeners after every sync invocation returns."""

    options: SyncOptions
    trigger: SyncTrigger
    finished_at: float
    result: Any = None
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class AgendaSyncError(RuntimeError):
    """Base error for scheduling failures."""


class SyncInProgressError(AgendaSyncError):
    """Raised when a sync is requested while another one is still running."""


__all__ = [
    "AUTOMATIC_SYNC",
    "AgendaSyncError",
    "DeletionPolicy",
    "INTERACTIVE_SYNC",
    "SchedulerState",
    "SyncCompletion",
    "SyncInProgressError",
    "SyncOptions",
    "SyncTrigger",
]
