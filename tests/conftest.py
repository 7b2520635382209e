"""Fixtures shared by unit and integration tests."""

from __future__ import annotations

import gzip
import io
from collections.abc import Callable

import pytest

from sitesync.platforms import platform_filter
from sitesync.reader import IndexReader
from sitesync.registry import FileRegistry

DEFAULT_URL = "https://update.example.org/"


@pytest.fixture()
def registry() -> FileRegistry:
    """Registry knowing the default site plus two remote sites."""
    registry = FileRegistry.with_default_source(DEFAULT_URL)
    registry.sources.add("site1", "https://site1.example.org/", timestamp=50)
    registry.sources.add("site2", "https://site2.example.org/")
    return registry


@pytest.fixture()
def reader(registry: FileRegistry) -> IndexReader:
    return IndexReader(registry, platform_filter("linux64"))


@pytest.fixture()
def gz() -> Callable[[str], io.BytesIO]:
    """Wrap an XML string into a gzip-compressed byte stream."""

    def _gz(xml: str) -> io.BytesIO:
        return io.BytesIO(gzip.compress(xml.encode("utf-8")))

    return _gz
