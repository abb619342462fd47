"""
Rewatch Engine Data Models.

Data exchanged with the build engine and the mode the watcher runs in.
Requires Python 3.11+.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from engine.protocols import BuildEngine, HmrEngine


@dataclass(slots=True)
class ExtraWatchResult:
    """Non-module paths an update asks to start (or stop) watching."""

    add: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)


@dataclass(slots=True)
class UpdateResult:
    """
    Result of an incremental compile.

    All lists are raw engine output: unfiltered, possibly duplicated and
    possibly naming paths that are already watched.
    """

    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    extra_watch_result: ExtraWatchResult = field(default_factory=ExtraWatchResult)

    @property
    def watch_candidates(self) -> list[str]:
        """Module ids and extra paths that may need to join the watch set."""
        return [*self.added, *self.extra_watch_result.add]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UpdateResult":
        """
        Build a result from a plain mapping.

        Accepts both snake_case keys and the camelCase keys produced by
        engine bindings (``extraWatchResult``).
        """
        extra = data.get("extra_watch_result", data.get("extraWatchResult")) or {}
        return cls(
            added=list(data.get("added") or []),
            changed=list(data.get("changed") or []),
            removed=list(data.get("removed") or []),
            extra_watch_result=ExtraWatchResult(
                add=list(extra.get("add") or []),
                remove=list(extra.get("remove") or []),
            ),
        )


@dataclass(frozen=True, slots=True)
class ServerMode:
    """Dev-server mode: changes are pushed through the HMR engine."""

    hmr_engine: HmrEngine
    build_engine: BuildEngine


@dataclass(frozen=True, slots=True)
class StandaloneMode:
    """Build-only mode: changes trigger an incremental rebuild."""

    build_engine: BuildEngine


WatchMode = ServerMode | StandaloneMode
