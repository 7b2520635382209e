"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

import aiosqlite
import pytest

from sitesync.cache import IndexCache


@pytest.fixture()
async def cache():
    """In-memory SQLite index cache for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        c = IndexCache(db)
        await c.init_db()
        yield c
