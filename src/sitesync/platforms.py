"""Platform names as used in the ``<platform>`` elements of index documents."""

from __future__ import annotations

import struct
import sys
from collections.abc import Callable, Set


def current_platform() -> str:
    """Return the platform name of the running interpreter, e.g. ``linux64``."""
    bits = struct.calcsize("P") * 8
    if sys.platform.startswith("win"):
        return f"win{bits}"
    if sys.platform == "darwin":
        return "macosx"
    if sys.platform.startswith("linux"):
        return f"linux{bits}"
    return sys.platform


def platform_filter(platform: str) -> Callable[[Set[str]], bool]:
    """Build the predicate deciding whether a file may be auto-installed here.

    Files that declare no platform at all are platform-independent.
    """

    def is_compatible(platforms: Set[str]) -> bool:
        return not platforms or platform in platforms

    return is_compatible
