"""
Rewatch Filesystem Watch Primitive.

Cross-platform file system monitoring using watchdog, with incremental
path addition on a running observer.
Requires Python 3.11+.
"""

import asyncio
import fnmatch
import os
from collections.abc import Callable, Iterable
from typing import Any

from watchdog.events import (
    DirModifiedEvent,
    DirMovedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from utils.config import WatcherSettings, get_settings
from utils.logger import LoggerMixin
from watcher.paths import iter_ancestors, normalize_path

ChangeCallback = Callable[[str], Any]


class ChangeEventHandler(FileSystemEventHandler, LoggerMixin):
    """
    Turns watchdog events into change reports.

    Runs on the observer thread; reports are handed to the owning
    WatchHandle, which moves them onto the event loop.
    """

    def __init__(self, handle: "WatchHandle", ignore_patterns: list[str] | None = None) -> None:
        super().__init__()
        self._handle = handle
        self._ignore_patterns = ignore_patterns or []

    def _should_ignore(self, path: str) -> bool:
        """
        Check if a path should be ignored.

        A pattern matches a whole path component (``.git`` drops
        ``/p/.git/HEAD`` but not ``/p/.gitignore``) or, as a glob, the full
        path or the file name.
        """
        parts = path.replace("\\", "/").split("/")
        for pattern in self._ignore_patterns:
            if (
                pattern in parts
                or fnmatch.fnmatch(path, pattern)
                or fnmatch.fnmatch(parts[-1], pattern)
            ):
                return True
        return False

    def _report(self, path: str | bytes) -> None:
        path = os.fsdecode(path)
        if self._should_ignore(path):
            return
        self._handle.report(path)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        if event.is_directory:
            return
        self._report(event.src_path)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Atomic saves replace the target by renaming a temp file onto it."""
        if event.is_directory:
            return
        self._report(event.dest_path)


class WatchHandle(LoggerMixin):
    """
    A running watchdog observer over a growing set of paths.

    Directories are watched recursively. A single file is watched through a
    non-recursive watch on its parent directory, with events narrowed to the
    registered files.
    """

    def __init__(
        self,
        settings: WatcherSettings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the handle.

        Args:
            settings: Watcher settings; defaults to the application settings
            loop: Loop the change callbacks run on; defaults to the running loop
        """
        self._settings = settings or get_settings().watcher
        self._loop = loop or asyncio.get_running_loop()
        self._observer: BaseObserver = (
            PollingObserver(timeout=self._settings.poll_interval_seconds)
            if self._settings.use_polling
            else Observer()
        )
        self._handler = ChangeEventHandler(self, self._settings.ignore_patterns)
        self._callbacks: list[ChangeCallback] = []
        self._dirs: set[str] = set()
        self._files: set[str] = set()
        self._watches: dict[tuple[str, bool], ObservedWatch] = {}
        self._closed = False

    def on_change(self, callback: ChangeCallback) -> None:
        """Register a callback receiving the normalized path of each changed file."""
        self._callbacks.append(callback)

    def add(self, paths: str | Iterable[str]) -> None:
        """
        Start watching more paths without restarting the observer.

        Args:
            paths: A path or an iterable of paths
        """
        if self._closed:
            return
        if isinstance(paths, str):
            paths = [paths]

        for path in paths:
            self._add_one(normalize_path(path))

    def _add_one(self, path: str) -> None:
        if path in self._dirs or path in self._files:
            return

        try:
            if os.path.isdir(path):
                self._add_dir(path)
            elif os.path.exists(path):
                # Files already under a recursive watch need no extra emitter
                if not self._is_under_dir(path):
                    self._schedule(os.path.dirname(path), recursive=False)
                self._files.add(path)
            else:
                self.log.debug("watch_path_missing", path=path)
        except OSError as e:
            self.log.debug("watch_path_schedule_failed", path=path, error=str(e))

    def _add_dir(self, path: str) -> None:
        if self._is_under_dir(path):
            self._dirs.add(path)
            return

        self._schedule(path, recursive=True)
        self._dirs.add(path)

        # Narrower watches inside the new directory would report every change twice
        covered = [
            key
            for key in self._watches
            if key != (path, True) and path in iter_ancestors(key[0])
        ]
        for key in covered:
            self._observer.unschedule(self._watches.pop(key))

    def _schedule(self, path: str, recursive: bool) -> None:
        key = (path, recursive)
        if key not in self._watches:
            self._watches[key] = self._observer.schedule(self._handler, path, recursive=recursive)

    @property
    def scheduled_watches(self) -> list[tuple[str, bool]]:
        """Directories with a live emitter, as (path, recursive) pairs."""
        return sorted(self._watches)

    def _is_under_dir(self, path: str) -> bool:
        return any(ancestor in self._dirs for ancestor in iter_ancestors(path))

    def is_watched(self, path: str) -> bool:
        """Check whether changes to a path are reported."""
        path = normalize_path(path)
        return path in self._files or self._is_under_dir(path)

    def report(self, path: str) -> None:
        """Forward a change from the observer thread to the event loop."""
        path = normalize_path(path)
        if self._closed or not self.is_watched(path):
            return
        try:
            self._loop.call_soon_threadsafe(self._emit, path)
        except RuntimeError:
            # Loop already closed
            self.log.debug("change_dropped", path=path)

    def _emit(self, path: str) -> None:
        if self._closed:
            return
        for callback in list(self._callbacks):
            try:
                callback(path)
            except Exception as e:
                self.log.error("watch_callback_failed", path=path, error=str(e))

    def start(self) -> None:
        """Start the observer thread."""
        self._observer.start()
        self.log.info(
            "watch_started",
            paths=len(self._dirs) + len(self._files),
            polling=self._settings.use_polling,
        )

    def _stop(self) -> bool:
        """Stop reporting and signal the observer; False if already closed."""
        if self._closed:
            return False
        self._closed = True
        self._callbacks.clear()
        self._observer.stop()
        return True

    def close(self) -> None:
        """
        Stop the observer. Safe to call more than once.

        Joins the observer thread in the calling thread, blocking for up to
        ``stop_timeout_seconds``. Use ``aclose`` from a coroutine.
        """
        if not self._stop():
            return
        if self._observer.is_alive():
            self._observer.join(timeout=self._settings.stop_timeout_seconds)
        self.log.info("watch_stopped")

    async def aclose(self) -> None:
        """Stop the observer, joining its thread off the event loop."""
        if not self._stop():
            return
        if self._observer.is_alive():
            await asyncio.to_thread(self._observer.join, self._settings.stop_timeout_seconds)
        self.log.info("watch_stopped")

    @property
    def watched_paths(self) -> list[str]:
        """Directories and files currently watched."""
        return sorted(self._dirs | self._files)

    @property
    def is_running(self) -> bool:
        """Check if the observer is running."""
        return not self._closed and self._observer.is_alive()


def open_watch(
    paths: Iterable[str],
    *,
    on_change: ChangeCallback | None = None,
    settings: WatcherSettings | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> WatchHandle:
    """
    Open a watch over an initial set of paths.

    Args:
        paths: Initial paths to watch
        on_change: Optional change callback
        settings: Watcher settings
        loop: Loop the callbacks run on; defaults to the running loop

    Returns:
        Started WatchHandle
    """
    handle = WatchHandle(settings=settings, loop=loop)
    if on_change is not None:
        handle.on_change(on_change)
    handle.add(paths)
    handle.start()
    return handle
