from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class CachedIndex(BaseModel):
    """Last compressed index document downloaded from an update site."""

    source_name: str
    url: str
    content: bytes  # gzip-compressed index, exactly as served
    checksum: str  # SHA-1 of content
    last_modified: str | None  # raw Last-Modified header
    fetched_at: datetime
    expires_at: datetime
    stale: bool = False
