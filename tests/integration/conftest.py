"""Integration test fixtures.

Provides a fully wired AppState with in-memory SQLite and a real HTTP
client; tests mock the update sites with respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from sitesync.cache import IndexCache
from sitesync.config import Settings
from sitesync.fetcher import Fetcher
from sitesync.state import AppState, build_platform_predicate, build_registry

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        default_source={"url": "https://update.example.org/"},
        sync={"platform": "linux64", "local_cache_path": str(tmp_path / "db.xml.gz")},
        cache={"db_path": ":memory:", "ttl_hours": 1},
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AppState:
    """AppState with two remote update sites besides the default one."""
    async with aiosqlite.connect(":memory:") as db:
        cache = IndexCache(db)
        await cache.init_db()

        async with httpx.AsyncClient() as client:
            state = AppState(
                settings=settings,
                registry=build_registry(settings),
                fetcher=Fetcher(client, settings.fetcher),
                is_compatible=build_platform_predicate(settings),
                http_client=client,
                cache=cache,
            )
            state.registry.sources.add("site1", "https://site1.example.org/")
            state.registry.sources.add("site2", "https://site2.example.org/")
            yield state
