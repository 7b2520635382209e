"""Streaming reader for gzip-compressed update-site index documents.

One read is a single forward pass over the document. Every ``<plugin>``
element is collected into a draft :class:`FileEntry`; when the element
closes, the draft is classified and merged into the :class:`FileRegistry`.
Entries committed before a fatal error stay committed.

Two entry points exist because the two kinds of document differ:

* :meth:`IndexReader.read_remote` reads the index of one named update site.
  Every file belongs to that site, and a file already owned by another
  site produces a shadowing warning.
* :meth:`IndexReader.read_local_cache` reads the combined local document.
  It carries ``<update-site>`` descriptors and per-file ``update-site``
  attributes; files naming a site that is no longer configured are dropped.
"""

from __future__ import annotations

import gzip
import io
import re
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING

import structlog
from pydantic import ValidationError

from sitesync.classifier import PlatformPredicate, apply_classification
from sitesync.errors import ErrorCode, SiteSyncError
from sitesync.models.files import Dependency, FileEntry, Version
from sitesync.platforms import current_platform, platform_filter

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sitesync.registry import FileRegistry

log = structlog.get_logger()

_FILE_TAGS = frozenset({"plugin", "file"})
_SOURCE_TAGS = frozenset({"update-site", "source-descriptor"})
_TEXT_TAGS = frozenset({"description", "author", "platform", "category", "link"})
_INTEGER = re.compile(r"[-+]?[0-9]+")


@dataclass
class _ReadState:
    """Per-read accumulator; one instance per document."""

    # None while reading the local combined document
    source_name: str | None
    # last-synced timestamp of the source before this read began
    since: int
    draft: FileEntry | None = None
    committed: int = 0
    warnings: list[str] = field(default_factory=list)


class IndexReader:
    """Parses index documents into a :class:`FileRegistry`."""

    def __init__(
        self,
        registry: FileRegistry,
        is_compatible: PlatformPredicate | None = None,
    ) -> None:
        self._registry = registry
        self._is_compatible = is_compatible or platform_filter(current_platform())

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def read_remote(self, source_name: str, stream: IO[bytes]) -> list[str]:
        """Read the index of ``source_name``; returns the shadowing warnings."""
        source = self._registry.sources.get(source_name)
        if source is None:
            raise SiteSyncError(ErrorCode.UNKNOWN_SOURCE, f"Unknown update site: {source_name!r}")
        state = _ReadState(source_name=source.name, since=source.timestamp)
        return self._read(state, stream)

    def read_remote_bytes(self, source_name: str, content: bytes) -> list[str]:
        return self.read_remote(source_name, io.BytesIO(content))

    def read_local_cache(self, stream: IO[bytes]) -> list[str]:
        """Read the combined local document, registering its update sites."""
        return self._read(_ReadState(source_name=None, since=0), stream)

    def read_local_cache_file(self, path: str | Path) -> list[str]:
        with open(path, "rb") as f:
            return self.read_local_cache(f)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _read(self, state: _ReadState, stream: IO[bytes]) -> list[str]:
        try:
            with gzip.GzipFile(fileobj=stream, mode="rb") as decompressed:
                self._parse(state, decompressed)
        except ET.ParseError as exc:
            raise SiteSyncError(
                ErrorCode.INVALID_INDEX, f"Malformed index document: {exc}"
            ) from exc
        except (gzip.BadGzipFile, EOFError, zlib.error) as exc:
            raise SiteSyncError(
                ErrorCode.INVALID_INDEX, f"Corrupt compressed index: {exc}"
            ) from exc
        finally:
            self._registry.warnings = state.warnings

        log.info(
            "index_read_complete",
            source=state.source_name or "<local>",
            files=state.committed,
            warnings=len(state.warnings),
        )
        return state.warnings

    def _parse(self, state: _ReadState, document: IO[bytes]) -> None:
        root: ET.Element | None = None
        for event, elem in ET.iterparse(document, events=("start", "end")):
            tag = _local_name(elem.tag)
            if event == "start":
                if root is None:
                    root = elem
                self._start(state, tag, elem.attrib)
            else:
                self._end(state, tag, elem)
                if tag in _FILE_TAGS and root is not None:
                    root.clear()

    def _start(self, state: _ReadState, tag: str, attrs: Mapping[str, str]) -> None:
        draft = state.draft
        if tag in _FILE_TAGS:
            if draft is not None:
                raise SiteSyncError(ErrorCode.INVALID_INDEX, f"Nested <{tag}> element")
            state.draft = self._new_draft(state, attrs)
        elif tag in _SOURCE_TAGS:
            if state.source_name is None:
                self._add_source(attrs)
        elif draft is None:
            return
        elif tag == "previous-version":
            draft.add_previous_version(
                Version(checksum=attrs.get("checksum", ""), timestamp=_get_int(attrs, "timestamp"))
            )
        elif tag == "version":
            draft.set_version(attrs.get("checksum", ""), _get_int(attrs, "timestamp"))
            draft.filesize = _get_int(attrs, "filesize")
        elif tag == "dependency":
            draft.add_dependency(
                Dependency(
                    filename=attrs.get("filename", ""),
                    timestamp=_get_int(attrs, "timestamp"),
                    overrides=attrs.get("overrides") == "true",
                )
            )

    def _end(self, state: _ReadState, tag: str, elem: ET.Element) -> None:
        draft = state.draft
        if draft is None:
            return
        body = "".join(elem.itertext()) if tag in _TEXT_TAGS else ""
        if tag == "description":
            draft.description = body
        elif tag == "author":
            draft.add_author(body)
        elif tag == "platform":
            draft.add_platform(body)
        elif tag == "category":
            draft.add_category(body)
        elif tag == "link":
            draft.add_link(body)
        elif tag in _FILE_TAGS:
            state.draft = None
            self._finish(state, draft)

    def _new_draft(self, state: _ReadState, attrs: Mapping[str, str]) -> FileEntry:
        filename = attrs.get("filename")
        if not filename:
            raise SiteSyncError(ErrorCode.INVALID_INDEX, "File element without a filename")

        sources = self._registry.sources
        if state.source_name is not None:
            source_name = state.source_name
            if source_name != sources.default_name:
                already = self._registry.get(filename)
                if already is not None and already.source_name != source_name:
                    warning = (
                        f"'{filename}' from source '{source_name}' shadows "
                        f"the one from source '{already.source_name}'"
                    )
                    log.warning(
                        "source_shadowed",
                        filename=filename,
                        source=source_name,
                        shadowed=already.source_name,
                    )
                    state.warnings.append(warning)
        else:
            source_name = attrs.get("update-site") or sources.default_name

        return FileEntry(
            filename=filename,
            source_name=source_name,
            executable=attrs.get("executable", "").lower() == "true",
            # withdrawn entries in the local document keep their last size here
            filesize=_get_int(attrs, "filesize"),
        )

    def _finish(self, state: _ReadState, draft: FileEntry) -> None:
        if state.source_name is None and draft.source_name not in self._registry.sources:
            log.debug(
                "file_dropped_unknown_source",
                filename=draft.filename,
                source=draft.source_name,
            )
            return
        # classify the version the entry will actually carry
        draft.promote_newest_version()
        apply_classification(draft, state.since, self._is_compatible)
        self._registry.commit(draft)
        state.committed += 1

    def _add_source(self, attrs: Mapping[str, str]) -> None:
        name = attrs.get("name")
        url = attrs.get("url")
        if not name or not url:
            raise SiteSyncError(
                ErrorCode.INVALID_INDEX, "Update site descriptor without a name or url"
            )
        timestamp = _get_int(attrs, "timestamp", required=True)
        try:
            self._registry.sources.add(
                name,
                url,
                upload_directory=attrs.get("upload-directory"),
                ssh_host=attrs.get("ssh-host"),
                timestamp=timestamp,
            )
        except ValidationError as exc:
            raise SiteSyncError(
                ErrorCode.INVALID_INDEX, f"Invalid update site descriptor {name!r}: {exc}"
            ) from exc


def _local_name(tag: str) -> str:
    # "{namespace}name" -> "name"
    return tag.rsplit("}", 1)[-1]


def _get_int(attrs: Mapping[str, str], key: str, *, required: bool = False) -> int:
    value = attrs.get(key)
    if value is None:
        if required:
            raise SiteSyncError(ErrorCode.INVALID_INDEX, f"Missing required attribute {key!r}")
        return 0
    # int() alone would also take "1_000" and surrounding whitespace
    if _INTEGER.fullmatch(value) is None:
        raise SiteSyncError(
            ErrorCode.INVALID_INDEX, f"Attribute {key!r} is not a number: {value!r}"
        )
    return int(value)
