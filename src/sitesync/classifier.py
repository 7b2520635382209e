"""Status classification of freshly parsed file drafts.

Reading an index can only tell two things about a file: the site withdrew it
(no current version), or the site publishes a version this client has never
seen from it before. Everything else (installed, updateable, locally
modified, ...) is decided later by comparing the registry against the disk.
"""

from __future__ import annotations

from collections.abc import Callable, Set

from sitesync.models.files import Action, FileEntry, Status

PlatformPredicate = Callable[[Set[str]], bool]


def classify(
    draft: FileEntry, since: int, is_compatible: PlatformPredicate
) -> tuple[Status | None, Action | None]:
    """Return the ``(status, action)`` pair for ``draft``.

    ``since`` must be the source's last-synced timestamp as it stood before
    the current read started; a version is new only if strictly newer.
    """
    if draft.current is None:
        return Status.OBSOLETE_UNINSTALLED, None
    if draft.is_newer_than(since):
        action = Action.INSTALL if is_compatible(draft.platforms) else Action.NEW
        return Status.NEW, action
    return None, None


def apply_classification(draft: FileEntry, since: int, is_compatible: PlatformPredicate) -> None:
    draft.status, draft.action = classify(draft, since, is_compatible)
