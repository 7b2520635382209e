"""Field-wise merge of a freshly parsed draft into an existing file entry."""

from __future__ import annotations

from sitesync.models.files import FileEntry


def merge(existing: FileEntry | None, incoming: FileEntry, *, default_source: str) -> FileEntry:
    """Fold ``incoming`` into ``existing`` and return the entry to store.

    History only ever grows: previous versions accumulate, and a current
    version that gets displaced (by a newer build or by a withdrawal) is moved
    into the history. While a file has a current version, no previous
    version is newer than it. Provenance moves to the incoming source only
    when that source is not the default one.
    """
    if existing is None:
        incoming.promote_newest_version()
        return incoming

    for version in incoming.previous:
        existing.add_previous_version(version)
    _merge_current(existing, incoming)
    existing.promote_newest_version()

    for dependency in incoming.dependencies:
        existing.add_dependency(dependency)

    if incoming.description is not None:
        existing.description = incoming.description
    if incoming.current is not None:
        existing.filesize = incoming.filesize
    existing.executable = incoming.executable
    for author in incoming.authors:
        existing.add_author(author)
    existing.platforms |= incoming.platforms
    existing.categories |= incoming.categories
    existing.links |= incoming.links

    existing.status = incoming.status
    existing.action = incoming.action

    if incoming.source_name != default_source and incoming.source_name != existing.source_name:
        existing.source_name = incoming.source_name
    return existing


def _merge_current(existing: FileEntry, incoming: FileEntry) -> None:
    theirs = incoming.current
    ours = existing.current
    if theirs is None:
        # withdrawn upstream
        if ours is not None:
            existing.current = None
            existing.add_previous_version(ours)
        return
    if ours is None:
        existing.set_version(theirs.checksum, theirs.timestamp)
        return
    if theirs == ours:
        return
    if theirs.timestamp >= ours.timestamp:
        existing.set_version(theirs.checksum, theirs.timestamp)
        existing.add_previous_version(ours)
    else:
        existing.add_previous_version(theirs)
