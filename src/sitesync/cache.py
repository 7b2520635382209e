"""SQLite cache of downloaded index documents.

Keeps the last compressed index fetched from each update site so that a
sync within the TTL does not hit the network, and so that a stale copy can
be revalidated with ``If-Modified-Since``.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as cache miss by callers),
write failures are logged and ignored (the fetched index is still parsed).
Errors are logged with ``exc_info=True`` so they remain observable.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from sitesync.models.cache import CachedIndex

if TYPE_CHECKING:
    from sitesync.fetcher import FetchedIndex

log = structlog.get_logger()

_CREATE_INDEX_TABLE = """
CREATE TABLE IF NOT EXISTS index_cache (
    source_name   TEXT PRIMARY KEY,
    url           TEXT NOT NULL,
    content       BLOB NOT NULL,
    checksum      TEXT NOT NULL,
    last_modified TEXT,
    fetched_at    TEXT NOT NULL,
    expires_at    TEXT NOT NULL
)
"""

_CREATE_EXPIRES_INDEX = (
    "CREATE INDEX IF NOT EXISTS idx_index_expires ON index_cache(expires_at)"
)


class IndexCache:
    """SQLite-backed cache of the last index document per update site."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_INDEX_TABLE)
        await self._db.execute(_CREATE_EXPIRES_INDEX)
        await self._db.commit()

    async def get_index(self, source_name: str) -> CachedIndex | None:
        """Read a cached index. Returns ``None`` on cache miss or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT source_name, url, content, checksum, last_modified, fetched_at, expires_at "
                "FROM index_cache WHERE source_name = ?",
                (source_name,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None

            fetched_at = datetime.fromisoformat(row[5])
            expires_at = datetime.fromisoformat(row[6])
            return CachedIndex(
                source_name=row[0],
                url=row[1],
                content=bytes(row[2]),
                checksum=row[3],
                last_modified=row[4],
                fetched_at=fetched_at,
                expires_at=expires_at,
                stale=datetime.now(UTC) > expires_at,
            )
        except aiosqlite.Error:
            log.warning("cache_read_error", key=f"index:{source_name}", exc_info=True)
            return None

    async def set_index(self, source_name: str, fetched: FetchedIndex, ttl_hours: int) -> None:
        """Write a fetched index. Non-fatal on failure."""
        try:
            now = datetime.now(UTC)
            expires_at = now + timedelta(hours=ttl_hours)
            await self._db.execute(
                "INSERT OR REPLACE INTO index_cache "
                "(source_name, url, content, checksum, last_modified, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    source_name,
                    fetched.url,
                    fetched.content,
                    fetched.checksum,
                    fetched.last_modified,
                    now.isoformat(),
                    expires_at.isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=f"index:{source_name}", exc_info=True)

    async def touch(self, source_name: str, ttl_hours: int) -> None:
        """Extend the lifetime of a revalidated entry. Non-fatal on failure."""
        try:
            expires_at = datetime.now(UTC) + timedelta(hours=ttl_hours)
            await self._db.execute(
                "UPDATE index_cache SET expires_at = ? WHERE source_name = ?",
                (expires_at.isoformat(), source_name),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=f"index:{source_name}", exc_info=True)

    async def cleanup_expired(self) -> None:
        """Delete entries expired more than 7 days ago. Non-fatal on failure."""
        try:
            cutoff = (datetime.now(UTC) - timedelta(days=7)).isoformat()
            cursor = await self._db.execute(
                "DELETE FROM index_cache WHERE expires_at < ?", (cutoff,)
            )
            deleted = cursor.rowcount
            await self._db.commit()
            log.info("cache_cleanup_complete", index_deleted=deleted)
        except aiosqlite.Error:
            log.warning("cache_cleanup_error", exc_info=True)
