"""Application state shared by one synchronisation session."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite

from sitesync.cache import IndexCache
from sitesync.fetcher import Fetcher, build_http_client
from sitesync.platforms import current_platform, platform_filter
from sitesync.registry import FileRegistry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

    from sitesync.classifier import PlatformPredicate
    from sitesync.config import Settings


@dataclass
class AppState:
    settings: Settings
    registry: FileRegistry
    fetcher: Fetcher
    is_compatible: PlatformPredicate
    http_client: httpx.AsyncClient | None = None
    cache: IndexCache | None = None


def build_registry(settings: Settings) -> FileRegistry:
    return FileRegistry.with_default_source(
        settings.default_source.url, name=settings.default_source.name
    )


def build_platform_predicate(settings: Settings) -> PlatformPredicate:
    return platform_filter(settings.sync.platform or current_platform())


@asynccontextmanager
async def open_state(settings: Settings) -> AsyncIterator[AppState]:
    """Open the HTTP client and the index cache for the lifetime of a session."""
    async with build_http_client(settings.fetcher) as client:
        state = AppState(
            settings=settings,
            registry=build_registry(settings),
            fetcher=Fetcher(client, settings.fetcher),
            is_compatible=build_platform_predicate(settings),
            http_client=client,
        )
        if not settings.cache.enabled:
            yield state
            return

        db_path = Path(settings.cache.db_path).expanduser()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(db_path) as db:
            state.cache = IndexCache(db)
            await state.cache.init_db()
            await state.cache.cleanup_expired()
            yield state
