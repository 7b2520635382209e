"""File and source registries: the shared state every sync operates on.

The file registry is mutated only through :meth:`FileRegistry.commit`, which
merges a finalised draft into the stored entry. Callers that read several
update sites at once hold :attr:`FileRegistry.commit_lock` around each read so
that two sources never merge into the same entry concurrently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.merge import merge
from sitesync.models.files import FileEntry
from sitesync.models.sources import Source

DEFAULT_SOURCE_NAME = "default"


class SourceRegistry:
    """Known update sites, always including the default one."""

    def __init__(self, default: Source) -> None:
        self._default_name = default.name
        self._sources: dict[str, Source] = {default.name: default}

    @property
    def default_name(self) -> str:
        return self._default_name

    @property
    def default(self) -> Source:
        return self._sources[self._default_name]

    def get(self, name: str) -> Source | None:
        return self._sources.get(name)

    def contains(self, name: str) -> bool:
        return name in self._sources

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[Source]:
        yield self.default
        for name in sorted(self._sources):
            if name != self._default_name:
                yield self._sources[name]

    def add(
        self,
        name: str,
        url: str,
        upload_directory: str | None = None,
        ssh_host: str | None = None,
        timestamp: int = 0,
    ) -> Source:
        """Register (or replace) the descriptor for ``name``.

        Replacing a known source keeps the later of the two timestamps.
        """
        known = self._sources.get(name.strip())
        if known is not None:
            timestamp = max(timestamp, known.timestamp)
        source = Source(
            name=name,
            url=url,
            upload_directory=upload_directory,
            ssh_host=ssh_host,
            timestamp=timestamp,
        )
        self._sources[source.name] = source
        return source

    def remove(self, name: str) -> None:
        if name == self._default_name:
            raise ValueError("the default source cannot be removed")
        self._sources.pop(name, None)

    def advance(self, name: str, timestamp: int) -> int:
        """Move the last-synced timestamp of ``name`` forward, never backwards."""
        source = self._sources.get(name)
        if source is None:
            raise SiteSyncError(ErrorCode.UNKNOWN_SOURCE, f"Unknown update site: {name!r}")
        if timestamp > source.timestamp:
            source.timestamp = timestamp
        return source.timestamp


@dataclass
class FileRegistry:
    """Canonical mapping from filename to :class:`FileEntry`."""

    sources: SourceRegistry
    files: dict[str, FileEntry] = field(default_factory=dict)

    # warnings collected by the most recent index read
    warnings: list[str] = field(default_factory=list)

    commit_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @classmethod
    def with_default_source(cls, url: str, name: str = DEFAULT_SOURCE_NAME) -> FileRegistry:
        return cls(sources=SourceRegistry(Source(name=name, url=url)))

    def get(self, filename: str) -> FileEntry | None:
        return self.files.get(filename)

    def __contains__(self, filename: object) -> bool:
        return filename in self.files

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[FileEntry]:
        return iter(self.entries())

    def entries(self) -> list[FileEntry]:
        return [self.files[name] for name in sorted(self.files)]

    def for_source(self, name: str) -> list[FileEntry]:
        return [entry for entry in self.entries() if entry.source_name == name]

    def commit(self, draft: FileEntry) -> FileEntry:
        """Merge ``draft`` into the entry stored under its filename."""
        existing = self.files.get(draft.filename)
        merged = merge(existing, draft, default_source=self.sources.default_name)
        self.files[merged.filename] = merged
        return merged

    def snapshot(self) -> dict[str, Any]:
        """Plain-data dump of the whole registry, stable across runs."""
        return {
            "sources": [source.model_dump() for source in self.sources],
            "files": [_dump_entry(entry) for entry in self.entries()],
        }


def _dump_entry(entry: FileEntry) -> dict[str, Any]:
    data = entry.model_dump(mode="json")
    for key in ("platforms", "categories", "links"):
        data[key] = sorted(data[key])
    return data
