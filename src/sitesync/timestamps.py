"""Logical timestamps.

Update sites stamp every version with a ``yyyyMMddHHmmss`` number derived
from wall-clock time once and compared as an opaque integer afterwards.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

_FORMAT = "%Y%m%d%H%M%S"


def derive_timestamp(last_modified: str | datetime | None = None) -> int:
    """Turn a last-modified signal into a logical timestamp.

    Accepts an HTTP ``Last-Modified`` header value or a datetime; ``None``
    (or an unparsable header) means "now". Naive datetimes are taken as UTC.
    """
    if isinstance(last_modified, str):
        try:
            when = parsedate_to_datetime(last_modified)
        except (TypeError, ValueError):
            when = datetime.now(UTC)
    elif last_modified is None:
        when = datetime.now(UTC)
    else:
        when = last_modified

    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return int(when.astimezone(UTC).strftime(_FORMAT))
