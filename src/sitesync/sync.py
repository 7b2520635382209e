"""Synchronisation of the file registry with its update sites.

Index documents are downloaded concurrently; reading them into the
registry is serialised through ``registry.commit_lock`` and happens in a
worker thread so the event loop keeps serving the remaining downloads.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.fetcher import FetchedIndex
from sitesync.reader import IndexReader
from sitesync.timestamps import derive_timestamp
from sitesync.writer import write_local_cache_file

if TYPE_CHECKING:
    from sitesync.models.cache import CachedIndex
    from sitesync.models.sources import Source
    from sitesync.state import AppState

log = structlog.get_logger()


@dataclass
class SyncReport:
    """Outcome of :func:`sync_all`, per update site."""

    warnings: dict[str, list[str]] = field(default_factory=dict)
    errors: dict[str, SiteSyncError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def all_warnings(self) -> list[str]:
        return [warning for name in self.warnings for warning in self.warnings[name]]


def _local_cache_path(state: AppState, path: str | Path | None) -> Path:
    return Path(path or state.settings.sync.local_cache_path).expanduser()


def _require_source(state: AppState, name: str) -> Source:
    source = state.registry.sources.get(name)
    if source is None:
        raise SiteSyncError(ErrorCode.UNKNOWN_SOURCE, f"Unknown update site: {name!r}")
    return source


async def load_local_cache(state: AppState, path: str | Path | None = None) -> list[str]:
    """Read the combined local document, if there is one."""
    path = _local_cache_path(state, path)
    if not path.exists():
        log.info("local_cache_missing", path=str(path))
        return []
    reader = IndexReader(state.registry, state.is_compatible)
    async with state.registry.commit_lock:
        return await asyncio.to_thread(reader.read_local_cache_file, path)


async def save_local_cache(state: AppState, path: str | Path | None = None) -> None:
    path = _local_cache_path(state, path)
    async with state.registry.commit_lock:
        await asyncio.to_thread(write_local_cache_file, state.registry, path)


@dataclass(frozen=True)
class _Download:
    index: FetchedIndex
    # True when the document came off the network and is not cached yet
    uncached: bool


async def _download(state: AppState, source: Source, force: bool) -> _Download:
    """Get the compressed index of ``source``, from the cache when still fresh."""
    settings = state.settings
    cached = None
    if state.cache is not None and not force:
        cached = await state.cache.get_index(source.name)
        if cached is not None and not cached.stale:
            log.debug("index_cache_hit", source=source.name)
            return _Download(_from_cache(cached), uncached=False)

    url = source.index_url(settings.sync.index_filename)
    fetched = await state.fetcher.fetch(
        url, if_modified_since=cached.last_modified if cached is not None else None
    )
    if fetched.not_modified and cached is not None:
        log.debug("index_not_modified", source=source.name)
        if state.cache is not None:
            await state.cache.touch(source.name, settings.cache.ttl_hours)
        return _Download(_from_cache(cached), uncached=False)
    return _Download(fetched, uncached=True)


def _from_cache(cached: CachedIndex) -> FetchedIndex:
    return FetchedIndex(
        url=cached.url,
        content=cached.content,
        last_modified=cached.last_modified,
        checksum=cached.checksum,
    )


async def _commit(state: AppState, name: str, download: _Download) -> list[str]:
    index = download.index
    reader = IndexReader(state.registry, state.is_compatible)
    async with state.registry.commit_lock:
        warnings = await asyncio.to_thread(reader.read_remote_bytes, name, index.content)
        timestamp = state.registry.sources.advance(name, derive_timestamp(index.last_modified))
    log.info("source_synced", source=name, timestamp=timestamp, warnings=len(warnings))

    # only documents that parsed cleanly are worth keeping
    if download.uncached and state.cache is not None:
        await state.cache.set_index(name, index, state.settings.cache.ttl_hours)
    return warnings


async def sync_source(state: AppState, name: str, *, force: bool = False) -> list[str]:
    """Fetch and read the index of one update site; returns its warnings."""
    source = _require_source(state, name)
    return await _commit(state, name, await _download(state, source, force))


async def sync_all(
    state: AppState, names: list[str] | None = None, *, force: bool = False
) -> SyncReport:
    """Synchronise several update sites (all known ones by default).

    A site that fails does not stop the others; its error is recorded in the
    report.
    """
    if names is None:
        names = [source.name for source in state.registry.sources]
    sources = [_require_source(state, name) for name in names]

    downloads = await asyncio.gather(
        *(_download(state, source, force) for source in sources),
        return_exceptions=True,
    )

    report = SyncReport()
    for source, outcome in zip(sources, downloads, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, SiteSyncError):
                raise outcome
            log.error("source_sync_failed", source=source.name, **outcome.to_dict()["error"])
            report.errors[source.name] = outcome
            continue
        try:
            report.warnings[source.name] = await _commit(state, source.name, outcome)
        except SiteSyncError as exc:
            log.error("source_sync_failed", source=source.name, **exc.to_dict()["error"])
            report.errors[source.name] = exc
    return report
