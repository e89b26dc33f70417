"""Command line host that runs the auto-sync mode against external commands."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .commands import CommandRead, CommandSync
from .config import CONFIG_FILE, ScheduleConfig, load_config, save_config
from .mode import AutoSyncMode
from .sync import SyncRoutine
from .watch import WatchdogChangeSource

LOG = logging.getLogger(__name__)

DEFAULT_SETTLE_SECONDS = 1.0


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agendasync", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Watch files and sync after they go quiet")
    run.add_argument("--sync-command", required=True, help="Command performing the sync")
    run.add_argument("--agenda-command", help="Read command guarded by the cooldown gate")
    run.add_argument(
        "--agenda-interval",
        type=float,
        default=3600.0,
        help="Seconds between agenda command runs",
    )
    run.add_argument("--watch", action="append", default=[], metavar="PATH", help="Extra file to watch")
    run.add_argument("--idle-seconds", type=float, help="Override the debounce quiet period")
    run.add_argument("--cooldown-seconds", type=float, help="Override the agenda cooldown")
    run.add_argument("--no-gating", action="store_true", help="Never sync before agenda runs")
    run.add_argument(
        "--enable",
        action="store_true",
        help="Switch auto-sync on for this run even if the persisted toggle is off",
    )
    run.add_argument(
        "--settle-seconds",
        type=float,
        default=DEFAULT_SETTLE_SECONDS,
        help="Ignore file changes for this long after each sync",
    )

    subparsers.add_parser("enable", help="Persist the auto-sync toggle as on")
    subparsers.add_parser("disable", help="Persist the auto-sync toggle as off")
    watch = subparsers.add_parser("watch", help="Add files to the persisted watch-list")
    watch.add_argument("paths", nargs="+", metavar="PATH")
    subparsers.add_parser("show", help="Print the effective configuration")
    return parser.parse_args(argv)


def apply_overrides(config: ScheduleConfig, args: argparse.Namespace) -> ScheduleConfig:
    """Merge ``run`` flags over the loaded configuration."""

    updates: dict[str, object] = {}
    if args.idle_seconds is not None:
        updates["idle_seconds"] = args.idle_seconds
    if args.cooldown_seconds is not None:
        updates["agenda_cooldown_seconds"] = args.cooldown_seconds
    if args.no_gating:
        updates["agenda_gating_enabled"] = False
    if args.enable:
        updates["enabled"] = True
    merged = config.with_watched_paths(*args.watch)
    # Validate through the model so negative overrides are rejected.
    return ScheduleConfig(**{**merged.model_dump(), **updates})


async def run_host(
    config: ScheduleConfig,
    args: argparse.Namespace,
    *,
    routine: SyncRoutine | None = None,
    observer_factory: Callable[[], BaseObserver] = Observer,
) -> None:
    """Run until cancelled: watch files and periodically build the agenda.

    The file watcher only starts when the persisted toggle (or ``--enable``)
    switches auto-sync on. Agenda commands run in a worker thread so timers
    keep firing; the pre-read sync itself blocks the loop until it returns.
    """

    mode = AutoSyncMode.from_config(
        routine if routine is not None else CommandSync(args.sync_command),
        config,
        settle_seconds=args.settle_seconds,
    )
    source: WatchdogChangeSource | None = None
    if mode.enabled:
        source = WatchdogChangeSource(config.watched_paths, observer_factory=observer_factory)
        mode.add_change_source(source)
        source.start()
    else:
        LOG.warning("Auto-sync is disabled; run `agendasync enable` or pass --enable")
    try:
        if args.agenda_command:
            read = CommandRead(args.agenda_command)
            while True:
                await mode.abefore_guarded_read()
                await asyncio.to_thread(read)
                await asyncio.sleep(args.agenda_interval)
        elif source is not None:
            await asyncio.Event().wait()
    finally:
        if source is not None:
            source.stop()
        mode.disable()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config()

    if args.command in {"enable", "disable"}:
        save_config(config.with_enabled(args.command == "enable"))
        print(f"Auto-sync {args.command}d in {CONFIG_FILE}")
        return 0
    if args.command == "watch":
        save_config(config.with_watched_paths(*args.paths))
        print(f"Watch-list updated in {CONFIG_FILE}")
        return 0
    if args.command == "show":
        print(config.model_dump_json(indent=2))
        return 0

    config = apply_overrides(config, args)
    if not config.watched_paths:
        LOG.warning("No watched files configured; only the agenda gate will trigger syncs")
    try:
        asyncio.run(run_host(config, args))
    except KeyboardInterrupt:
        return 130
    return 0


__all__ = ["apply_overrides", "main", "parse_args", "run_host"]
