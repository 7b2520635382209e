from __future__ import annotations

import hashlib


def checksum(data: bytes) -> str:
    """SHA-1 hex digest of ``data``; a fresh hasher per call, safe across tasks."""
    return hashlib.sha1(data).hexdigest()
