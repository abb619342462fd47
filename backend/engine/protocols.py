"""
Rewatch Engine Protocols.

Structural interfaces of the collaborators the watcher drives. The watcher
references these engines but never owns them.
Requires Python 3.11+.
"""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from engine.models import UpdateResult


@runtime_checkable
class BuildEngine(Protocol):
    """The compiler as seen by the watcher."""

    def has_module(self, path: str) -> bool:
        """Whether ``path`` belongs to the compiled module graph."""
        ...

    async def update(self, paths: list[str], is_hmr: bool) -> "UpdateResult":
        """Run an incremental compile for ``paths``."""
        ...

    def resolved_module_paths(self, root: str) -> Sequence[str]:
        """Paths of modules the graph depends on, including ones outside ``root``."""
        ...

    def resolved_watch_paths(self) -> Sequence[str]:
        """Non-module paths declared as build inputs (config files and the like)."""
        ...

    def transform_module_path(self, root: str, module_id: str) -> str:
        """Map a module id to a filesystem path."""
        ...

    async def write_resources_to_disk(self) -> None:
        """Flush compiled output."""
        ...


@runtime_checkable
class HmrEngine(Protocol):
    """Live-update engine, present only when running behind a dev server."""

    async def hmr_update(self, path: str) -> None:
        ...

    def on_update_finish(self, callback: Callable[["UpdateResult"], Any]) -> None:
        ...
