"""
Rewatch Path Filter.

Decides whether a candidate path may join the watch set.
Requires Python 3.11+.
"""

from collections.abc import Callable

from watcher.paths import normalize_path, path_exists
from watcher.registry import WatchedPathSet


class PathFilter:
    """
    Pure predicate over candidate paths.

    Rules, first match wins:
        1. under the project root: rejected, the root watch already sees it
        2. contains a null byte: rejected
        3. covered by a watched path: rejected
        4. missing on disk: rejected
    Everything else is accepted.
    """

    def __init__(
        self,
        root: str,
        registry: WatchedPathSet,
        exists: Callable[[str], bool] = path_exists,
    ) -> None:
        self._root = normalize_path(root)
        self._root_prefix = self._root if self._root.endswith("/") else f"{self._root}/"
        self._registry = registry
        self._exists = exists

    @property
    def root(self) -> str:
        return self._root

    def accepts(self, path: str) -> bool:
        file = normalize_path(path)

        if file.startswith(self._root_prefix) or "\0" in file:
            return False

        if self._registry.covers(file):
            return False

        return self._exists(file)
