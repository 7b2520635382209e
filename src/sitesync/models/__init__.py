from __future__ import annotations

from sitesync.models.cache import CachedIndex
from sitesync.models.files import Action, Dependency, FileEntry, Status, Version
from sitesync.models.sources import Source

__all__ = [
    # files
    "Action",
    "Dependency",
    "FileEntry",
    "Status",
    "Version",
    # sources
    "Source",
    # cache
    "CachedIndex",
]
