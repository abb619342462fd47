"""
Rewatch File Watcher.

Owns the watch session: seeds the watch set, opens the filesystem watch,
wires change events to the dispatcher and tears everything down on close.
Requires Python 3.11+.
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from engine.models import ServerMode, UpdateResult, WatchMode
from utils.config import WatcherSettings, get_settings
from utils.logger import LoggerMixin
from watcher.absorber import RebuildCompletionAbsorber
from watcher.collector import ExtraPathCollector
from watcher.dispatcher import ChangeDispatcher, DispatchState
from watcher.fs_watch import WatchHandle, open_watch
from watcher.path_filter import PathFilter
from watcher.paths import normalize_path
from watcher.registry import WatchedPathSet

WatchFactory = Callable[..., WatchHandle]


class LifecycleState(str, Enum):
    """Lifecycle of a FileWatcher. ACTIVE -> CLOSED is one-way."""

    ACTIVE = "active"
    CLOSED = "closed"


class FileWatcher(LoggerMixin):
    """
    Watches a project root plus the extra paths its build graph depends on.

    The watch set grows as rebuilds discover new dependencies; the underlying
    watch is extended in place rather than restarted. The build and HMR
    engines are referenced, not owned.
    """

    def __init__(
        self,
        mode: WatchMode,
        root: str | Path,
        settings: WatcherSettings | None = None,
        watch_factory: WatchFactory = open_watch,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            mode: ServerMode (HMR engine present) or StandaloneMode
            root: Project root directory
            settings: Watcher settings; defaults to the application settings
            watch_factory: Opens the filesystem watch, ``(paths, *, settings) -> handle``
        """
        self._mode: WatchMode | None = mode
        self._root = normalize_path(root)
        self._settings = settings or get_settings().watcher
        self._watch_factory = watch_factory
        self._state = LifecycleState.ACTIVE
        self._started = False

        self._registry = WatchedPathSet()
        self._filter = PathFilter(self._root, self._registry)
        self._collector: ExtraPathCollector | None = ExtraPathCollector(
            self._root, mode.build_engine, self._filter
        )

        self._handle: WatchHandle | None = None
        self._absorber: RebuildCompletionAbsorber | None = None
        self._dispatcher: ChangeDispatcher | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    def _is_closed(self) -> bool:
        return self._state is LifecycleState.CLOSED

    async def start(self) -> None:
        """
        Start watching.

        Raises:
            RuntimeError: If the watcher was already started or is closed
        """
        if self._is_closed():
            raise RuntimeError("FileWatcher is closed")
        if self._started:
            raise RuntimeError("FileWatcher already started")
        self._started = True

        mode = self._mode
        extra_paths = self.get_extra_watched_files()

        self._registry.add_if_absent(self._root)
        self._registry.add_all(extra_paths)

        handle = self._watch_factory(self._registry.snapshot(), settings=self._settings)
        self._handle = handle
        self._absorber = RebuildCompletionAbsorber(
            root=self._root,
            build_engine=mode.build_engine,
            path_filter=self._filter,
            registry=self._registry,
            handle=handle,
            is_closed=self._is_closed,
        )
        self._dispatcher = ChangeDispatcher(mode, self._absorber, self._is_closed)

        handle.on_change(self._on_change)
        if isinstance(mode, ServerMode):
            mode.hmr_engine.on_update_finish(self._handle_update_finish)

        self.log.info(
            "file_watcher_started",
            root=self._root,
            mode="server" if isinstance(mode, ServerMode) else "standalone",
            extra_paths=extra_paths,
        )

    def _on_change(self, path: str) -> None:
        """Change callback; runs on the event loop thread."""
        if self._is_closed() or self._dispatcher is None:
            return

        task = asyncio.get_running_loop().create_task(self._dispatcher.dispatch(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_update_finish(self, result: UpdateResult | Mapping[str, Any]) -> None:
        """Completion callback registered with the HMR engine."""
        if self._is_closed() or self._absorber is None:
            return
        try:
            self._absorber.on_complete(result)
        except Exception as e:
            self.log.error("update_finish_failed", error=str(e))

    def get_extra_watched_files(self) -> list[str]:
        """Extra paths outside the root that the build graph currently asks for."""
        if self._collector is None:
            return []
        return self._collector.collect()

    def watch_extra_files(self) -> list[str]:
        """
        Re-collect extra paths and add new ones to the live watch.

        Returns:
            Paths that were newly added
        """
        return self.add_paths(self.get_extra_watched_files())

    def add_paths(self, paths: Iterable[str]) -> list[str]:
        """
        Filter paths and add the accepted ones to the live watch.

        Returns:
            Paths that were newly added
        """
        if self._is_closed() or self._handle is None:
            return []

        added = [
            path
            for path in map(normalize_path, paths)
            if self._filter.accepts(path) and self._registry.add_if_absent(path)
        ]
        if added:
            self._handle.add(added)
            self.log.info("watch_paths_added", count=len(added), paths=added)
        return added

    async def wait_for_dispatches(self) -> None:
        """Wait for every in-flight dispatch to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _teardown(self) -> WatchHandle | None:
        """Mark the watcher closed and detach everything it references."""
        self._state = LifecycleState.CLOSED

        handle, self._handle = self._handle, None
        self._mode = None
        self._collector = None
        self._absorber = None
        self._dispatcher = None
        self._registry.clear()
        return handle

    def close(self) -> None:
        """
        Stop watching and drop engine references. Safe to call more than once.

        Blocks while the observer thread joins; coroutines should prefer
        ``aclose``.
        """
        if self._is_closed():
            return
        handle = self._teardown()
        if handle is not None:
            handle.close()
        self.log.info("file_watcher_closed", root=self._root)

    async def aclose(self) -> None:
        """Like ``close``, without blocking the event loop on the observer join."""
        if self._is_closed():
            return
        handle = self._teardown()
        if handle is not None:
            await handle.aclose()
        self.log.info("file_watcher_closed", root=self._root)

    @property
    def root(self) -> str:
        return self._root

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._is_closed()

    @property
    def dispatch_state(self) -> DispatchState:
        if self._dispatcher is None:
            return DispatchState.IDLE
        return self._dispatcher.state

    @property
    def internal_watcher(self) -> WatchHandle | None:
        """The live watch handle, for hosts that add paths by hand."""
        return self._handle

    @property
    def watched_paths(self) -> list[str]:
        """Snapshot of the watch set."""
        return self._registry.snapshot()

    async def __aenter__(self) -> "FileWatcher":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.aclose()


async def create_file_watcher(
    mode: WatchMode,
    root: str | Path,
    settings: WatcherSettings | None = None,
    extra_paths: Iterable[str] = (),
) -> FileWatcher:
    """
    Create and start a file watcher.

    Args:
        mode: ServerMode or StandaloneMode
        root: Project root directory
        settings: Watcher settings
        extra_paths: Paths to add by hand after start, through the same filter

    Returns:
        Started FileWatcher
    """
    watcher = FileWatcher(mode=mode, root=root, settings=settings)
    await watcher.start()
    watcher.add_paths(extra_paths)
    return watcher
