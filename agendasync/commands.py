"""Adapters that run the external sync and agenda commands as subprocesses."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from typing import Mapping, Sequence

from .models import AgendaSyncError, SyncOptions

LOG = logging.getLogger(__name__)

DELETIONS_ENV = "AGENDASYNC_DELETIONS"
QUIET_ENV = "AGENDASYNC_QUIET"


class CommandSyncError(AgendaSyncError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int) -> None:
        super().__init__(f"Command {shlex.join(args)!r} exited with status {returncode}")
        self.command = tuple(args)
        self.returncode = returncode


def _split(command: str | Sequence[str]) -> list[str]:
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def options_env(options: SyncOptions) -> dict[str, str]:
    """Environment overrides describing ``options`` to the sync command."""

    env: dict[str, str] = {}
    if options.deletion_policy is not None:
        env[DELETIONS_ENV] = options.deletion_policy.value
    if options.quiet:
        env[QUIET_ENV] = "1"
    return env


class CommandSync:
    """Sync routine that shells out to a user-supplied command."""

    def __init__(
        self,
        command: str | Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> None:
        self._args = _split(command)
        if not self._args:
            raise ValueError("Sync command must not be empty")
        self._env = dict(env) if env is not None else None
        self._cwd = cwd

    @property
    def args(self) -> tuple[str, ...]:
        return tuple(self._args)

    def __call__(self, options: SyncOptions) -> subprocess.CompletedProcess[str]:
        env = dict(self._env if self._env is not None else os.environ)
        env.pop(DELETIONS_ENV, None)
        env.pop(QUIET_ENV, None)
        env.update(options_env(options))
        LOG.debug("Running sync command", extra={"command": self._args})
        # Quiet syncs keep their output away from the terminal.
        result = subprocess.run(
            self._args,
            env=env,
            cwd=self._cwd,
            text=True,
            capture_output=options.quiet,
            check=False,
        )
        if result.returncode != 0:
            raise CommandSyncError(self._args, result.returncode)
        return result


class CommandRead:
    """Guarded read that runs an agenda command."""

    def __init__(self, command: str | Sequence[str], *, cwd: str | None = None) -> None:
        self._args = _split(command)
        if not self._args:
            raise ValueError("Agenda command must not be empty")
        self._cwd = cwd

    def __call__(self) -> int:
        LOG.debug("Running agenda command", extra={"command": self._args})
        return subprocess.run(self._args, cwd=self._cwd, check=False).returncode


__all__ = [
    "CommandRead",
    "CommandSync",
    "CommandSyncError",
    "DELETIONS_ENV",
    "QUIET_ENV",
    "options_env",
]
