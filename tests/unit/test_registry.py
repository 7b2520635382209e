"""Unit tests for sitesync.registry."""

from __future__ import annotations

import pytest

from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.models import FileEntry, Source
from sitesync.registry import DEFAULT_SOURCE_NAME, FileRegistry, SourceRegistry

# ---------------------------------------------------------------------------
# SourceRegistry
# ---------------------------------------------------------------------------


class TestSourceRegistry:
    def _sources(self) -> SourceRegistry:
        return SourceRegistry(Source(name="default", url="https://update.example.org/"))

    def test_default_always_present(self) -> None:
        sources = self._sources()
        assert sources.contains("default")
        assert sources.default_name == "default"
        assert len(sources) == 1

    def test_add_and_get(self) -> None:
        sources = self._sources()
        sources.add("site1", "https://site1.example.org", upload_directory="/up", ssh_host="h")
        source = sources.get("site1")
        assert source is not None
        assert source.url == "https://site1.example.org/"
        assert source.upload_directory == "/up"
        assert source.ssh_host == "h"
        assert source.timestamp == 0
        assert "site1" in sources

    def test_get_unknown_returns_none(self) -> None:
        assert self._sources().get("nope") is None

    def test_add_replaces_descriptor(self) -> None:
        sources = self._sources()
        sources.add("site1", "https://old.example.org/", timestamp=5)
        sources.add("site1", "https://new.example.org/", timestamp=7)
        assert sources.get("site1").url == "https://new.example.org/"
        assert sources.get("site1").timestamp == 7

    def test_replacing_descriptor_keeps_later_timestamp(self) -> None:
        sources = self._sources()
        sources.add("site1", "https://old.example.org/", timestamp=20150101000000)
        sources.add("site1", "https://new.example.org/", timestamp=5)
        assert sources.get("site1").url == "https://new.example.org/"
        assert sources.get("site1").timestamp == 20150101000000

    def test_iteration_default_first_then_by_name(self) -> None:
        sources = self._sources()
        sources.add("zeta", "https://z.example.org/")
        sources.add("alpha", "https://a.example.org/")
        assert [s.name for s in sources] == ["default", "alpha", "zeta"]

    def test_advance_never_decreases(self) -> None:
        sources = self._sources()
        sources.add("site1", "https://site1.example.org/", timestamp=100)
        assert sources.advance("site1", 200) == 200
        assert sources.advance("site1", 150) == 200
        assert sources.get("site1").timestamp == 200

    def test_advance_unknown_source_raises(self) -> None:
        with pytest.raises(SiteSyncError) as exc_info:
            self._sources().advance("nope", 1)
        assert exc_info.value.code == ErrorCode.UNKNOWN_SOURCE

    def test_remove(self) -> None:
        sources = self._sources()
        sources.add("site1", "https://site1.example.org/")
        sources.remove("site1")
        assert not sources.contains("site1")

    def test_default_cannot_be_removed(self) -> None:
        with pytest.raises(ValueError):
            self._sources().remove("default")


# ---------------------------------------------------------------------------
# FileRegistry
# ---------------------------------------------------------------------------


class TestFileRegistry:
    def test_with_default_source(self) -> None:
        registry = FileRegistry.with_default_source("https://update.example.org/")
        assert registry.sources.default_name == DEFAULT_SOURCE_NAME
        assert len(registry) == 0

    def test_commit_new_entry(self, registry: FileRegistry) -> None:
        draft = FileEntry(filename="foo.jar", source_name="site1")
        stored = registry.commit(draft)
        assert stored is draft
        assert registry.get("foo.jar") is draft
        assert "foo.jar" in registry

    def test_commit_merges_into_existing(self, registry: FileRegistry) -> None:
        first = registry.commit(FileEntry(filename="foo.jar", source_name="site1"))
        registry.commit(FileEntry(filename="foo.jar", source_name="site2", description="d"))
        assert registry.get("foo.jar") is first
        assert first.description == "d"
        assert first.source_name == "site2"
        assert len(registry) == 1

    def test_entries_sorted_by_filename(self, registry: FileRegistry) -> None:
        for name in ("b.jar", "a.jar", "c.jar"):
            registry.commit(FileEntry(filename=name, source_name="default"))
        assert [e.filename for e in registry] == ["a.jar", "b.jar", "c.jar"]

    def test_for_source(self, registry: FileRegistry) -> None:
        registry.commit(FileEntry(filename="a.jar", source_name="site1"))
        registry.commit(FileEntry(filename="b.jar", source_name="default"))
        assert [e.filename for e in registry.for_source("site1")] == ["a.jar"]

    def test_snapshot_sorts_sets(self, registry: FileRegistry) -> None:
        entry = FileEntry(filename="a.jar", source_name="default")
        for platform in ("win64", "linux64", "macosx"):
            entry.add_platform(platform)
        registry.commit(entry)
        snapshot = registry.snapshot()
        assert snapshot["files"][0]["platforms"] == ["linux64", "macosx", "win64"]
        assert [s["name"] for s in snapshot["sources"]] == ["default", "site1", "site2"]
