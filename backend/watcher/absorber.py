"""
Rewatch Rebuild-Completion Absorber.

Folds paths discovered by a rebuild into the live watch set.
Requires Python 3.11+.
"""

from collections.abc import Callable, Mapping
from typing import Any

from engine.models import UpdateResult
from engine.protocols import BuildEngine
from utils.logger import LoggerMixin
from watcher.fs_watch import WatchHandle
from watcher.path_filter import PathFilter
from watcher.paths import normalize_path
from watcher.registry import WatchedPathSet


class RebuildCompletionAbsorber(LoggerMixin):
    """
    Grows the watch set from update results.

    Newly added modules and extra watch paths are resolved to filesystem
    paths, filtered, and added to both the registry and the running watch
    handle. The handle is extended in place, never restarted.
    """

    def __init__(
        self,
        root: str,
        build_engine: BuildEngine,
        path_filter: PathFilter,
        registry: WatchedPathSet,
        handle: WatchHandle,
        is_closed: Callable[[], bool],
    ) -> None:
        self._root = root
        self._build_engine = build_engine
        self._filter = path_filter
        self._registry = registry
        self._handle = handle
        self._is_closed = is_closed

    def on_complete(self, result: UpdateResult | Mapping[str, Any]) -> list[str]:
        """
        Absorb an update result.

        Args:
            result: Result of an incremental compile, or the plain mapping
                an engine binding emits for one

        Returns:
            Paths that were newly added to the watch set
        """
        if self._is_closed():
            return []
        if isinstance(result, Mapping):
            result = UpdateResult.from_mapping(result)

        resolved = [
            normalize_path(self._build_engine.transform_module_path(self._root, candidate))
            for candidate in result.watch_candidates
        ]

        # Each add is visible to the next accepts() call, so duplicates and
        # children of a path added earlier in this batch are rejected.
        added = [
            path
            for path in resolved
            if self._filter.accepts(path) and self._registry.add_if_absent(path)
        ]

        if added:
            self._handle.add(added)
            self.log.info("watch_paths_added", count=len(added), paths=added)

        return added
