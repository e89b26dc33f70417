"""Watchdog-backed change source that feeds file events into the event loop."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Sequence

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from .mode import ChangeListener
from .scheduler import PathLike, normalize_path

LOG = logging.getLogger(__name__)


class _ForwardingHandler(FileSystemEventHandler):
    """Hands changed file paths to a callback (runs on the observer thread)."""

    def __init__(self, forward: Callable[[Sequence[str]], None]) -> None:
        super().__init__()
        self._forward = forward

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward((os.fsdecode(event.src_path),))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward((os.fsdecode(event.src_path),))

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically rename a temp file over the target.
        if not event.is_directory:
            self._forward((os.fsdecode(event.dest_path),))


class WatchdogChangeSource:
    """Watches the parent directories of the given files and emits changes.

    Events are delivered to listeners on the asyncio loop thread so the
    scheduler only ever sees serialized callbacks.
    """

    def __init__(
        self,
        paths: Iterable[PathLike],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._paths = tuple(normalize_path(path) for path in paths)
        self._loop = loop
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._listeners: set[ChangeListener] = set()

    @property
    def paths(self) -> tuple[str, ...]:
        return self._paths

    @property
    def running(self) -> bool:
        return self._observer is not None

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to change events; returns an unsubscribe handle."""

        self._listeners.add(listener)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    def start(self) -> None:
        """Start the observer thread; must be called from the event loop."""

        if self._observer is not None:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        handler = _ForwardingHandler(self._forward)
        observer = self._observer_factory()
        for directory in sorted({str(Path(path).parent) for path in self._paths}):
            if not os.path.isdir(directory):
                LOG.warning("Skipping missing watch directory", extra={"directory": directory})
                continue
            observer.schedule(handler, directory, recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        LOG.info("Watching files for changes", extra={"paths": list(self._paths)})

    def stop(self) -> None:
        """Stop the observer thread."""

        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=1)

    def emit(self, paths: Sequence[str]) -> None:
        """Deliver a change event to listeners on the current thread."""

        for listener in tuple(self._listeners):
            listener(paths)

    def _forward(self, paths: Sequence[str]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.emit, paths)


__all__ = ["WatchdogChangeSource"]
