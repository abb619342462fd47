"""
Rewatch Change Dispatcher.

Routes each change event to the HMR engine or to an incremental rebuild.
Requires Python 3.11+.
"""

import time
from collections.abc import Callable
from enum import Enum

from engine.models import ServerMode, WatchMode
from engine.protocols import BuildEngine
from utils.logger import LoggerMixin
from watcher.absorber import RebuildCompletionAbsorber
from watcher.paths import normalize_path


class DispatchState(str, Enum):
    """Whether any handler is currently in flight."""

    IDLE = "idle"
    DISPATCHING = "dispatching"


class ChangeDispatcher(LoggerMixin):
    """
    Dispatches change events.

    In server mode every change goes to the HMR engine. In standalone mode a
    change to a known module triggers an incremental rebuild whose result is
    absorbed into the watch set before the output is flushed.

    Dispatches are neither serialized nor coalesced: a second event may start
    while the first is suspended on an engine call. Failures are logged and
    never escape ``dispatch``.
    """

    def __init__(
        self,
        mode: WatchMode,
        absorber: RebuildCompletionAbsorber,
        is_closed: Callable[[], bool],
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            mode: Server or standalone mode, fixed for the session
            absorber: Receives standalone rebuild results
            is_closed: Lifecycle check, consulted on entry and after each await
        """
        self._mode = mode
        self._absorber = absorber
        self._is_closed = is_closed
        self._in_flight = 0

    @property
    def state(self) -> DispatchState:
        return DispatchState.DISPATCHING if self._in_flight else DispatchState.IDLE

    async def dispatch(self, path: str) -> None:
        """Handle a single change event."""
        if self._is_closed():
            return

        path = normalize_path(path)
        self._in_flight += 1
        try:
            await self._handle(path)
        except Exception as e:
            self.log.error("change_dispatch_failed", path=path, error=str(e))
        finally:
            self._in_flight -= 1

    async def _handle(self, path: str) -> None:
        self.log.debug("file_changed", path=path)

        if isinstance(self._mode, ServerMode):
            await self._mode.hmr_engine.hmr_update(path)
            return

        build_engine = self._mode.build_engine
        if build_engine.has_module(path):
            await self._rebuild(build_engine, path)

    async def _rebuild(self, build_engine: BuildEngine, path: str) -> None:
        start_time = time.perf_counter()
        self.log.info("rebuild_started", path=path)

        result = await build_engine.update([path], True)
        if self._is_closed():
            return

        self._absorber.on_complete(result)
        await build_engine.write_resources_to_disk()

        self.log.info(
            "rebuild_finished",
            path=path,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
