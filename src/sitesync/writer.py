"""Serialise a :class:`FileRegistry` into the combined local index document.

The output is what :meth:`IndexReader.read_local_cache` reads back: one
``<update-site>`` per known source followed by one ``<plugin>`` per file,
each tagged with the site that owns it. Output is deterministic so that an
unchanged registry always produces the same bytes.
"""

from __future__ import annotations

import gzip
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import IO, TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sitesync.models.files import FileEntry
    from sitesync.models.sources import Source
    from sitesync.registry import FileRegistry

log = structlog.get_logger()

ROOT_TAG = "pluginRecords"


def build_document(registry: FileRegistry) -> ET.ElementTree:
    root = ET.Element(ROOT_TAG)
    for source in registry.sources:
        root.append(_source_element(source))
    for entry in registry.entries():
        root.append(_file_element(entry))
    tree = ET.ElementTree(root)
    ET.indent(tree)
    return tree


def write_local_cache(registry: FileRegistry, stream: IO[bytes]) -> None:
    # mtime=0 keeps the gzip header stable between runs
    with gzip.GzipFile(fileobj=stream, mode="wb", filename="", mtime=0) as compressed:
        build_document(registry).write(compressed, encoding="utf-8", xml_declaration=True)


def write_local_cache_file(registry: FileRegistry, path: str | Path) -> None:
    """Write the local cache to ``path`` via a temporary sibling file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "wb") as f:
        write_local_cache(registry, f)
    tmp.replace(path)
    log.info("local_cache_written", path=str(path), files=len(registry))


def _source_element(source: Source) -> ET.Element:
    attrs = {"name": source.name, "url": source.url}
    if source.ssh_host is not None:
        attrs["ssh-host"] = source.ssh_host
    if source.upload_directory is not None:
        attrs["upload-directory"] = source.upload_directory
    attrs["timestamp"] = str(source.timestamp)
    return ET.Element("update-site", attrs)


def _file_element(entry: FileEntry) -> ET.Element:
    attrs = {"update-site": entry.source_name, "filename": entry.filename}
    if entry.executable:
        attrs["executable"] = "true"
    if entry.current is None and entry.filesize:
        # no <version> to carry the size of a withdrawn file
        attrs["filesize"] = str(entry.filesize)
    elem = ET.Element("plugin", attrs)

    if entry.current is not None:
        ET.SubElement(
            elem,
            "version",
            {
                "checksum": entry.current.checksum,
                "timestamp": str(entry.current.timestamp),
                "filesize": str(entry.filesize),
            },
        )
    for version in entry.previous:
        ET.SubElement(
            elem,
            "previous-version",
            {"checksum": version.checksum, "timestamp": str(version.timestamp)},
        )
    for dependency in entry.dependencies:
        dep_attrs = {"filename": dependency.filename, "timestamp": str(dependency.timestamp)}
        if dependency.overrides:
            dep_attrs["overrides"] = "true"
        ET.SubElement(elem, "dependency", dep_attrs)

    if entry.description is not None:
        ET.SubElement(elem, "description").text = entry.description
    for author in entry.authors:
        ET.SubElement(elem, "author").text = author
    for tag, values in (
        ("platform", entry.platforms),
        ("category", entry.categories),
        ("link", entry.links),
    ):
        for value in sorted(values):
            ET.SubElement(elem, tag).text = value
    return elem
