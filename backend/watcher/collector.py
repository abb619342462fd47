"""
Rewatch Extra-Path Collector.

Asks the build engine which paths outside the project root must be watched.
Requires Python 3.11+.
"""

from engine.protocols import BuildEngine
from utils.logger import LoggerMixin
from watcher.path_filter import PathFilter
from watcher.paths import normalize_path


class ExtraPathCollector(LoggerMixin):
    """
    Collects extra watch paths from the build engine.

    The result is a pure function of the engine state and the current watch
    set, so ``collect`` can be called again whenever the graph has grown.
    """

    def __init__(self, root: str, build_engine: BuildEngine, path_filter: PathFilter) -> None:
        """
        Initialize the collector.

        Args:
            root: Normalized project root
            build_engine: Engine queried for module and watch paths
            path_filter: Filter applied to every candidate
        """
        self._root = root
        self._build_engine = build_engine
        self._filter = path_filter

    def collect(self) -> list[str]:
        """
        Collect accepted extra paths.

        Returns:
            Normalized module paths followed by declared watch paths, in
            engine order, minus anything the filter rejects
        """
        candidates = [
            *self._build_engine.resolved_module_paths(self._root),
            *self._build_engine.resolved_watch_paths(),
        ]
        accepted = [
            path
            for path in (normalize_path(candidate) for candidate in candidates)
            if self._filter.accepts(path)
        ]

        self.log.debug(
            "extra_paths_collected",
            candidates=len(candidates),
            accepted=len(accepted),
        )
        return accepted
