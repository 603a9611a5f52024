"""
updateinfo.xml: errata (security, bugfix and enhancement advisories).
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree.ElementTree import Element

from rpmrepo_metadata.errors import MissingFieldError
from rpmrepo_metadata.formats.base import MetadataFormat, read_checksum
from rpmrepo_metadata.mdtypes import METADATA_UPDATEINFO
from rpmrepo_metadata.repository import Repository
from rpmrepo_metadata.updateinfo import (
    UpdateCollection,
    UpdateCollectionModule,
    UpdateCollectionPackage,
    UpdateRecord,
    UpdateReference,
)
from rpmrepo_metadata.xmlstream import XmlReader, XmlWriter, get_text, parse_int

logger = logging.getLogger(__name__)

# <tag> -> UpdateRecord text attribute
_TEXT_FIELDS = {
    "id": "id",
    "title": "title",
    "rights": "rights",
    "release": "release",
    "pushcount": "pushcount",
    "severity": "severity",
    "summary": "summary",
    "description": "description",
    "solution": "solution",
}

_PACKAGE_FLAGS = ("reboot_suggested", "restart_suggested", "relogin_suggested")

_KNOWN_TAGS = (
    set(_TEXT_FIELDS)
    | set(_PACKAGE_FLAGS)
    | {
        "issued",
        "updated",
        "references",
        "reference",
        "pkglist",
        "collection",
        "name",
        "module",
        "package",
        "filename",
        "sum",
    }
)


def parse_bool(value: Optional[str]) -> bool:
    """Parse the flag spellings found in the wild ("True", "true", "1")."""
    return (value or "").strip().lower() in ("true", "1", "yes")


class UpdateinfoXml(MetadataFormat):
    """Codec for updateinfo.xml.

    Every ``<update>`` becomes an UpdateRecord appended to
    :attr:`Repository.updates`. Updates are not tied to the package list;
    collection packages are plain references by name and version.
    """

    filename = "updateinfo.xml"
    mdtype = METADATA_UPDATEINFO
    root_tag = "updates"

    def load(self, repository: Repository, reader: XmlReader) -> None:
        reader.expect_root(self.root_tag)
        for event, tag, elem in reader:
            if event != "start":
                continue
            if tag == "update":
                repository.add_update(self._read_update(reader, elem))
            else:
                reader.skip(elem)
        logger.debug(f"Loaded {len(repository.updates)} updates from {self.filename}")

    def _read_update(self, reader: XmlReader, record: Element) -> UpdateRecord:
        reader.record = "update"
        update = UpdateRecord(
            from_=record.get("from", ""),
            update_type=record.get("type", ""),
            status=record.get("status", ""),
            version=record.get("version", ""),
        )
        collection: Optional[UpdateCollection] = None
        package: Optional[UpdateCollectionPackage] = None

        for event, tag, elem in reader:
            if event == "start":
                if tag == "collection":
                    collection = UpdateCollection(shortname=elem.get("short", ""))
                    update.pkglist.append(collection)
                elif tag == "package" and collection is not None:
                    package = UpdateCollectionPackage(
                        name=elem.get("name", ""),
                        version=elem.get("version", ""),
                        release=elem.get("release", ""),
                        epoch=elem.get("epoch", "0"),
                        arch=elem.get("arch", ""),
                        src=elem.get("src", ""),
                    )
                    collection.packages.append(package)
                elif tag not in _KNOWN_TAGS:
                    reader.skip(elem)
                continue

            if elem is record:
                break

            if package is not None:
                if tag == "package":
                    package = None
                elif tag == "filename":
                    package.filename = get_text(elem)
                elif tag == "sum":
                    package.checksum = read_checksum(elem)
                elif tag in _PACKAGE_FLAGS:
                    setattr(package, tag, parse_bool(get_text(elem)))
            elif collection is not None:
                if tag == "collection":
                    collection = None
                elif tag == "name":
                    collection.name = get_text(elem)
                elif tag == "module":
                    collection.module = UpdateCollectionModule(
                        name=elem.get("name", ""),
                        stream=elem.get("stream", ""),
                        version=parse_int(elem.get("version"), "module.version"),
                        context=elem.get("context", ""),
                        arch=elem.get("arch", ""),
                    )
            elif tag in _TEXT_FIELDS:
                setattr(update, _TEXT_FIELDS[tag], get_text(elem))
            elif tag == "issued":
                update.issued_date = elem.get("date")
            elif tag == "updated":
                update.updated_date = elem.get("date")
            elif tag == "reboot_suggested":
                update.reboot_suggested = parse_bool(get_text(elem))
            elif tag == "reference":
                update.references.append(
                    UpdateReference(
                        href=elem.get("href", ""),
                        id=elem.get("id", ""),
                        title=elem.get("title", ""),
                        reftype=elem.get("type", ""),
                    )
                )
        else:
            reader.truncated()

        if not update.id:
            raise MissingFieldError("id")

        reader.release(record)
        return update

    def write(self, repository: Repository, writer: XmlWriter) -> None:
        writer.start_document()
        writer.start(self.root_tag)
        for update in repository.updates:
            self.write_update(writer, update)
        writer.end(self.root_tag)
        writer.end_document()
        logger.debug(f"Wrote {len(repository.updates)} updates to {self.filename}")

    def write_update(self, writer: XmlWriter, update: UpdateRecord) -> None:
        writer.start(
            "update",
            {
                "from": update.from_ or None,
                "status": update.status or None,
                "type": update.update_type or None,
                "version": update.version or None,
            },
        )
        writer.element("id", update.id)
        writer.element("title", update.title)
        if update.issued_date is not None:
            writer.element("issued", attrs={"date": update.issued_date})
        if update.updated_date is not None:
            writer.element("updated", attrs={"date": update.updated_date})
        for tag in ("rights", "release", "pushcount", "severity", "summary", "description", "solution"):
            value = getattr(update, tag)
            # Empty pushcount is kept; None means absent
            if value or (tag == "pushcount" and value is not None):
                writer.element(tag, value)
        if update.reboot_suggested:
            writer.element("reboot_suggested", "True")

        writer.start("references")
        for reference in update.references:
            writer.element(
                "reference",
                attrs={
                    "href": reference.href,
                    "id": reference.id or None,
                    "type": reference.reftype or None,
                    "title": reference.title or None,
                },
            )
        writer.end("references")

        writer.start("pkglist")
        for collection in update.pkglist:
            self.write_collection(writer, collection)
        writer.end("pkglist")

        writer.end("update")

    def write_collection(self, writer: XmlWriter, collection: UpdateCollection) -> None:
        writer.start("collection", {"short": collection.shortname or None})
        writer.element("name", collection.name)
        module = collection.module
        if module is not None:
            writer.element(
                "module",
                attrs={
                    "name": module.name,
                    "stream": module.stream,
                    "version": None if module.version is None else str(module.version),
                    "context": module.context,
                    "arch": module.arch,
                },
            )
        for package in collection.packages:
            writer.start(
                "package",
                {
                    "name": package.name,
                    "version": package.version,
                    "release": package.release,
                    "epoch": package.epoch or "0",
                    "arch": package.arch,
                    "src": package.src or None,
                },
            )
            writer.element("filename", package.filename)
            if package.checksum is not None:
                checksum_type, digest = package.checksum.to_algorithm_and_digest()
                writer.element("sum", digest, {"type": checksum_type})
            for flag in _PACKAGE_FLAGS:
                if getattr(package, flag):
                    writer.element(flag, "True")
            writer.end("package")
        writer.end("collection")
