"""
Rewatch File Watcher Package.

Dynamic watch-set management and change dispatch for incremental rebuilds.
Requires Python 3.11+.
"""

from watcher.file_watcher import FileWatcher, LifecycleState, create_file_watcher
from watcher.dispatcher import ChangeDispatcher, DispatchState
from watcher.absorber import RebuildCompletionAbsorber
from watcher.collector import ExtraPathCollector
from watcher.fs_watch import WatchHandle, open_watch
from watcher.path_filter import PathFilter
from watcher.registry import WatchedPathSet
from watcher.paths import normalize_path

__all__ = [
    "FileWatcher",
    "LifecycleState",
    "create_file_watcher",
    "ChangeDispatcher",
    "DispatchState",
    "RebuildCompletionAbsorber",
    "ExtraPathCollector",
    "WatchHandle",
    "open_watch",
    "PathFilter",
    "WatchedPathSet",
    "normalize_path",
]
