"""Error taxonomy shared by every sitesync component.

Parse failures and transport failures carry distinct codes so that callers
can tell a broken index document from an unreachable update site.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    UNKNOWN_SOURCE = "UNKNOWN_SOURCE"
    INVALID_INDEX = "INVALID_INDEX"
    INDEX_NOT_FOUND = "INDEX_NOT_FOUND"
    INDEX_FETCH_FAILED = "INDEX_FETCH_FAILED"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"


class SiteSyncError(Exception):
    """Raised for every failure that aborts the read of an index document."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }
