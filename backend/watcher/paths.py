"""
Rewatch Path Helpers.

Every path that enters the watcher is normalized here so that string
comparisons between roots, candidates and events are meaningful.
Requires Python 3.11+.
"""

import os
import posixpath
from collections.abc import Iterator


def normalize_path(path: str | os.PathLike[str]) -> str:
    """
    Normalize a path to an absolute, '/'-separated form.

    Args:
        path: Absolute or relative path

    Returns:
        Absolute path with '.'/'..' collapsed and '/' as separator
    """
    raw = os.fspath(path).replace("\\", "/")
    return os.path.abspath(raw).replace("\\", "/")


def iter_ancestors(path: str) -> Iterator[str]:
    """Yield a normalized path and each of its parent directories, nearest first."""
    current = path
    while True:
        yield current
        parent = posixpath.dirname(current)
        if parent == current or not parent:
            return
        current = parent


def path_exists(path: str) -> bool:
    """Existence check that treats any OS error as a missing path."""
    try:
        return os.path.exists(path)
    except (OSError, ValueError):
        return False
