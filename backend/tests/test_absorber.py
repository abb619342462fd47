"""
Tests for the Rebuild-Completion Absorber.

Requires Python 3.11+.
"""

import pytest
from conftest import FakeBuildEngine, FakeWatchHandle

from engine.models import ExtraWatchResult, UpdateResult
from watcher.absorber import RebuildCompletionAbsorber
from watcher.path_filter import PathFilter
from watcher.registry import WatchedPathSet


class TestRebuildCompletionAbsorber:
    """Test cases for RebuildCompletionAbsorber."""

    @pytest.fixture
    def registry(self, project) -> WatchedPathSet:
        return WatchedPathSet([project.root])

    @pytest.fixture
    def handle(self) -> FakeWatchHandle:
        return FakeWatchHandle([])

    def _absorber(self, project, engine, registry, handle, closed=lambda: False):
        return RebuildCompletionAbsorber(
            root=project.root,
            build_engine=engine,
            path_filter=PathFilter(project.root, registry),
            registry=registry,
            handle=handle,
            is_closed=closed,
        )

    def test_adds_resolved_modules_and_extra_paths(self, project, registry, handle):
        engine = FakeBuildEngine(module_map={"mod:b": project.linked_module})
        absorber = self._absorber(project, engine, registry, handle)

        result = UpdateResult(
            added=["mod:b"],
            extra_watch_result=ExtraWatchResult(add=[project.cfg_file]),
        )
        added = absorber.on_complete(result)

        assert added == [project.linked_module, project.cfg_file]
        assert handle.added == [project.linked_module, project.cfg_file]
        assert registry.snapshot() == [project.root, project.linked_module, project.cfg_file]

    def test_skips_already_watched_and_duplicates(self, project, registry, handle):
        registry.add_if_absent(project.cfg_file)
        engine = FakeBuildEngine(module_map={"mod:x": project.lib_file})
        absorber = self._absorber(project, engine, registry, handle)

        result = UpdateResult(
            added=["mod:x", "mod:x"],
            extra_watch_result=ExtraWatchResult(add=[project.cfg_file, project.lib_file]),
        )

        assert absorber.on_complete(result) == [project.lib_file]
        assert handle.added == [project.lib_file]

    def test_rejects_modules_resolved_under_root(self, project, registry, handle):
        engine = FakeBuildEngine(module_map={"mod:a": project.source_file})
        absorber = self._absorber(project, engine, registry, handle)

        assert absorber.on_complete(UpdateResult(added=["mod:a"])) == []
        assert handle.added == []

    def test_later_candidates_see_earlier_additions(self, project, registry, handle):
        engine = FakeBuildEngine()
        absorber = self._absorber(project, engine, registry, handle)

        result = UpdateResult(extra_watch_result=ExtraWatchResult(add=[project.lib_dir, project.lib_file]))

        assert absorber.on_complete(result) == [project.lib_dir]

    def test_missing_paths_are_dropped(self, project, registry, handle):
        engine = FakeBuildEngine()
        absorber = self._absorber(project, engine, registry, handle)

        result = UpdateResult(added=[f"{project.lib_dir}/not-yet-written.css"])

        assert absorber.on_complete(result) == []
        assert len(registry) == 1

    def test_does_nothing_once_closed(self, project, registry, handle):
        engine = FakeBuildEngine()
        absorber = self._absorber(project, engine, registry, handle, closed=lambda: True)

        result = UpdateResult(extra_watch_result=ExtraWatchResult(add=[project.cfg_file]))

        assert absorber.on_complete(result) == []
        assert handle.added == []
        assert registry.snapshot() == [project.root]

    def test_removals_are_ignored(self, project, registry, handle):
        registry.add_if_absent(project.cfg_file)
        absorber = self._absorber(project, FakeBuildEngine(), registry, handle)

        absorber.on_complete(UpdateResult(extra_watch_result=ExtraWatchResult(remove=[project.cfg_file])))

        assert project.cfg_file in registry

    def test_accepts_snake_case_mapping(self, project, registry, handle):
        absorber = self._absorber(project, FakeBuildEngine(), registry, handle)

        added = absorber.on_complete({"extra_watch_result": {"add": [project.cfg_file]}})

        assert added == [project.cfg_file]
        assert handle.added == [project.cfg_file]
