"""
Rewatch Watch Set Registry.

The set of paths currently subscribed to for change notifications.
Requires Python 3.11+.
"""

from collections.abc import Iterable, Iterator

from watcher.paths import iter_ancestors, normalize_path


class WatchedPathSet:
    """
    Insertion-ordered set of watched paths.

    Members only ever grow during a watch session; ``clear`` exists for
    teardown. Mutations are synchronous, so a path added here is visible to
    the very next filter evaluation.
    """

    def __init__(self, paths: Iterable[str] = ()) -> None:
        # dict keeps insertion order for deterministic snapshots
        self._paths: dict[str, None] = {}
        self.add_all(paths)

    def add_if_absent(self, path: str) -> bool:
        """
        Add a path unless it is already a member.

        Returns:
            True if the path was newly added
        """
        path = normalize_path(path)
        if path in self._paths:
            return False
        self._paths[path] = None
        return True

    def add_all(self, paths: Iterable[str]) -> list[str]:
        """Add several paths, returning the ones that were new."""
        return [path for path in paths if self.add_if_absent(path)]

    def contains(self, path: str) -> bool:
        return normalize_path(path) in self._paths

    def covers(self, path: str) -> bool:
        """
        Check whether a member equals the path or is one of its ancestors.

        A member ``/a/b`` covers ``/a/b`` and ``/a/b/c.txt`` but not ``/a/bc``.
        """
        # Whole components only; a plain string prefix would let /proj cover /proj-two
        return any(
            ancestor in self._paths
            for ancestor in iter_ancestors(normalize_path(path))
        )

    def snapshot(self) -> list[str]:
        """Members in insertion order."""
        return list(self._paths)

    def clear(self) -> None:
        """Drop every member. Only used on teardown."""
        self._paths.clear()

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.contains(path)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._paths)
