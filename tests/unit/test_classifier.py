"""Unit tests for sitesync.classifier and sitesync.platforms."""

from __future__ import annotations

import pytest

from sitesync.classifier import apply_classification, classify
from sitesync.models import Action, FileEntry, Status, Version
from sitesync.platforms import current_platform, platform_filter

LINUX = platform_filter("linux64")


def _draft(timestamp: int | None = None, platforms: set[str] | None = None) -> FileEntry:
    entry = FileEntry(filename="foo.jar", source_name="site1", platforms=platforms or set())
    if timestamp is not None:
        entry.set_version("abc", timestamp)
    return entry


class TestClassify:
    def test_no_version_is_obsolete(self) -> None:
        assert classify(_draft(), 0, LINUX) == (Status.OBSOLETE_UNINSTALLED, None)

    def test_obsolete_regardless_of_history(self) -> None:
        draft = _draft()
        draft.add_previous_version(Version(checksum="old", timestamp=999))
        assert classify(draft, 0, LINUX)[0] == Status.OBSOLETE_UNINSTALLED

    def test_newer_version_is_new_and_installable(self) -> None:
        assert classify(_draft(100), 50, LINUX) == (Status.NEW, Action.INSTALL)

    @pytest.mark.parametrize("since", [100, 150])
    def test_not_newer_is_left_unclassified(self, since: int) -> None:
        assert classify(_draft(100), since, LINUX) == (None, None)

    def test_incompatible_platform_is_new_but_not_installable(self) -> None:
        assert classify(_draft(100, {"win64"}), 50, LINUX) == (Status.NEW, Action.NEW)

    def test_compatible_platform_listed(self) -> None:
        assert classify(_draft(100, {"win64", "linux64"}), 50, LINUX) == (
            Status.NEW,
            Action.INSTALL,
        )

    def test_predicate_receives_platforms(self) -> None:
        seen = []

        def predicate(platforms):
            seen.append(set(platforms))
            return False

        classify(_draft(100, {"macosx"}), 50, predicate)
        assert seen == [{"macosx"}]

    def test_apply_classification_sets_fields(self) -> None:
        draft = _draft(100)
        apply_classification(draft, 50, LINUX)
        assert draft.status == Status.NEW
        assert draft.action == Action.INSTALL


class TestPlatforms:
    def test_empty_set_is_compatible(self) -> None:
        assert platform_filter("linux64")(set())

    def test_other_platform_is_not_compatible(self) -> None:
        assert not platform_filter("linux64")({"win32"})

    def test_current_platform_is_named(self) -> None:
        name = current_platform()
        assert name
        assert name == name.lower()
