"""
Rewatch Engine Package.

Interfaces and data models of the build and live-update engines.
Requires Python 3.11+.
"""

from engine.protocols import BuildEngine, HmrEngine
from engine.models import (
    ExtraWatchResult,
    ServerMode,
    StandaloneMode,
    UpdateResult,
    WatchMode,
)

__all__ = [
    "BuildEngine",
    "HmrEngine",
    "ExtraWatchResult",
    "UpdateResult",
    "ServerMode",
    "StandaloneMode",
    "WatchMode",
]
