"""
Rewatch Test Configuration.

Pytest fixtures and in-memory engine fakes.
Requires Python 3.11+.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from engine.models import UpdateResult
from utils.config import WatcherSettings
from watcher.paths import normalize_path


class FakeBuildEngine:
    """Build engine that records calls and returns canned results."""

    def __init__(
        self,
        *,
        modules: Iterable[str] = (),
        module_paths: Iterable[str] = (),
        watch_paths: Iterable[str] = (),
        module_map: dict[str, str] | None = None,
        update_result: UpdateResult | None = None,
    ) -> None:
        self.modules = set(modules)
        self.module_paths = list(module_paths)
        self.watch_paths = list(watch_paths)
        self.module_map = dict(module_map or {})
        self.update_result = update_result or UpdateResult()
        self.update_error: Exception | None = None
        self.write_error: Exception | None = None
        self.update_calls: list[tuple[list[str], bool]] = []
        self.write_calls = 0
        self.on_update: Callable[[], Any] | None = None

    def has_module(self, path: str) -> bool:
        return path in self.modules

    async def update(self, paths: list[str], is_hmr: bool) -> UpdateResult:
        self.update_calls.append((list(paths), is_hmr))
        if self.on_update is not None:
            self.on_update()
        if self.update_error is not None:
            raise self.update_error
        return self.update_result

    def resolved_module_paths(self, root: str) -> list[str]:
        return list(self.module_paths)

    def resolved_watch_paths(self) -> list[str]:
        return list(self.watch_paths)

    def transform_module_path(self, root: str, module_id: str) -> str:
        return self.module_map.get(module_id, module_id)

    async def write_resources_to_disk(self) -> None:
        self.write_calls += 1
        if self.write_error is not None:
            raise self.write_error


class FakeHmrEngine:
    """HMR engine that records pushes and lets tests fire completions."""

    def __init__(self) -> None:
        self.hmr_calls: list[str] = []
        self.callbacks: list[Callable[[UpdateResult], Any]] = []
        self.error: Exception | None = None

    async def hmr_update(self, path: str) -> None:
        self.hmr_calls.append(path)
        if self.error is not None:
            raise self.error

    def on_update_finish(self, callback: Callable[[UpdateResult], Any]) -> None:
        self.callbacks.append(callback)

    def finish(self, result: UpdateResult) -> None:
        for callback in self.callbacks:
            callback(result)


class FakeWatchHandle:
    """Stands in for the watchdog-backed WatchHandle."""

    def __init__(self, paths: Iterable[str], settings: WatcherSettings | None = None) -> None:
        self.initial_paths = list(paths)
        self.settings = settings
        self.added: list[str] = []
        self.callbacks: list[Callable[[str], Any]] = []
        self.close_calls = 0
        self.closed_async = False

    def add(self, paths: str | Iterable[str]) -> None:
        if isinstance(paths, str):
            paths = [paths]
        self.added.extend(paths)

    def on_change(self, callback: Callable[[str], Any]) -> None:
        self.callbacks.append(callback)

    def close(self) -> None:
        self.close_calls += 1

    async def aclose(self) -> None:
        self.close_calls += 1
        self.closed_async = True

    def fire(self, path: str) -> None:
        for callback in self.callbacks:
            callback(path)


@dataclass
class ProjectLayout:
    """Temporary project root plus files that live outside it."""

    root: str
    lib_dir: str
    lib_file: str
    cfg_file: str
    linked_module: str
    source_file: str


@pytest.fixture
def project(tmp_path: Path) -> ProjectLayout:
    """Create a project root and some external files."""
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    source_file = root / "src" / "a.ts"
    source_file.write_text("export const a = 1;\n")

    lib_dir = tmp_path / "lib"
    lib_dir.mkdir()
    lib_file = lib_dir / "x.css"
    lib_file.write_text("body { margin: 0; }\n")

    cfg_dir = tmp_path / "cfg"
    cfg_dir.mkdir()
    cfg_file = cfg_dir / "y.json"
    cfg_file.write_text("{}\n")

    linked_dir = tmp_path / "linked" / "src"
    linked_dir.mkdir(parents=True)
    linked_module = linked_dir / "b.ts"
    linked_module.write_text("export const b = 2;\n")

    return ProjectLayout(
        root=normalize_path(root),
        lib_dir=normalize_path(lib_dir),
        lib_file=normalize_path(lib_file),
        cfg_file=normalize_path(cfg_file),
        linked_module=normalize_path(linked_module),
        source_file=normalize_path(source_file),
    )


@pytest.fixture
def settings() -> WatcherSettings:
    """Watcher settings independent of the environment."""
    return WatcherSettings(use_polling=True, poll_interval_seconds=0.1, stop_timeout_seconds=2.0)


@pytest.fixture
def watch_handles() -> list[FakeWatchHandle]:
    """Handles opened by the fake watch factory, in order."""
    return []


@pytest.fixture
def watch_factory(watch_handles: list[FakeWatchHandle]) -> Callable[..., FakeWatchHandle]:
    """Watch factory that opens FakeWatchHandles."""

    def factory(paths: Iterable[str], *, settings: WatcherSettings | None = None) -> FakeWatchHandle:
        handle = FakeWatchHandle(paths, settings)
        watch_handles.append(handle)
        return handle

    return factory
