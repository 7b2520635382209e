from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class Status(StrEnum):
    """Where a file stands relative to the update sites and the local install.

    Only ``NEW`` and ``OBSOLETE_UNINSTALLED`` are derived while reading index
    documents; the rest belong to the reconciliation pass against local disk.
    """

    NOT_INSTALLED = "NOT_INSTALLED"
    INSTALLED = "INSTALLED"
    UPDATEABLE = "UPDATEABLE"
    MODIFIED = "MODIFIED"
    LOCAL_ONLY = "LOCAL_ONLY"
    NEW = "NEW"
    OBSOLETE = "OBSOLETE"
    OBSOLETE_MODIFIED = "OBSOLETE_MODIFIED"
    OBSOLETE_UNINSTALLED = "OBSOLETE_UNINSTALLED"


class Action(StrEnum):
    LOCAL_ONLY = "LOCAL_ONLY"
    NOT_INSTALLED = "NOT_INSTALLED"
    INSTALLED = "INSTALLED"
    UPDATEABLE = "UPDATEABLE"
    MODIFIED = "MODIFIED"
    NEW = "NEW"
    OBSOLETE = "OBSOLETE"
    UNINSTALL = "UNINSTALL"
    INSTALL = "INSTALL"
    UPDATE = "UPDATE"
    UPLOAD = "UPLOAD"
    REMOVE = "REMOVE"


class Version(BaseModel):
    """A specific build of a file: content digest plus logical timestamp."""

    model_config = ConfigDict(frozen=True)

    checksum: str
    timestamp: int  # yyyyMMddHHmmss, compared as an integer


class Dependency(BaseModel):
    filename: str
    timestamp: int = 0
    overrides: bool = False  # replaces a same-named edge instead of adding to it


class FileEntry(BaseModel):
    """Everything the update sites have said about one filename."""

    filename: str
    source_name: str
    current: Version | None = None
    previous: list[Version] = []
    filesize: int = 0
    description: str | None = None
    authors: list[str] = []
    platforms: set[str] = set()
    categories: set[str] = set()
    links: set[str] = set()
    dependencies: list[Dependency] = []
    executable: bool = False
    status: Status | None = None
    action: Action | None = None

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def set_version(self, checksum: str, timestamp: int) -> None:
        self.current = Version(checksum=checksum, timestamp=timestamp)
        if self.current in self.previous:
            self.previous.remove(self.current)

    def add_previous_version(self, version: Version) -> None:
        """Record ``version`` in the history, keeping timestamps non-decreasing.

        Duplicates and the current version itself are ignored.
        """
        if version == self.current or version in self.previous:
            return
        index = len(self.previous)
        while index > 0 and self.previous[index - 1].timestamp > version.timestamp:
            index -= 1
        self.previous.insert(index, version)

    def promote_newest_version(self) -> None:
        """Restore ``current.timestamp >= every previous timestamp``.

        If the history holds a version newer than the current one, that
        version becomes current and the displaced one joins the history.
        """
        if self.current is None or not self.previous:
            return
        newest = self.previous[-1]
        if newest.timestamp > self.current.timestamp:
            demoted = self.current
            self.previous.pop()
            self.current = newest
            self.add_previous_version(demoted)

    def has_previous_version(self, checksum: str) -> bool:
        return any(version.checksum == checksum for version in self.previous)

    def is_newer_than(self, timestamp: int) -> bool:
        return self.current is not None and self.current.timestamp > timestamp

    def is_obsolete(self) -> bool:
        return self.current is None

    # ------------------------------------------------------------------
    # Dependencies and descriptive metadata
    # ------------------------------------------------------------------

    def add_dependency(self, dependency: Dependency) -> None:
        for i, existing in enumerate(self.dependencies):
            if existing.filename == dependency.filename:
                if dependency.overrides:
                    self.dependencies[i] = dependency
                return
        self.dependencies.append(dependency)

    def add_author(self, author: str) -> None:
        if author not in self.authors:
            self.authors.append(author)

    def add_platform(self, platform: str) -> None:
        self.platforms.add(platform)

    def add_category(self, category: str) -> None:
        self.categories.add(category)

    def add_link(self, link: str) -> None:
        self.links.add(link)
