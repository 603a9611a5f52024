"""
repomd.xml: the repository index listing every other metadata file.
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree.ElementTree import Element

from rpmrepo_metadata.errors import MissingFieldError
from rpmrepo_metadata.formats.base import MetadataFormat, read_checksum
from rpmrepo_metadata.mdtypes import XML_NS_REPO, XML_NS_RPM
from rpmrepo_metadata.models import Checksum, DistroTag, RepoMdRecord
from rpmrepo_metadata.repository import Repository
from rpmrepo_metadata.xmlstream import (
    XmlReader,
    XmlWriter,
    get_attribute,
    get_text,
    parse_int,
)

logger = logging.getLogger(__name__)

# <tag> -> RepoMdRecord integer attribute
_INT_FIELDS = {
    "timestamp": "timestamp",
    "size": "size",
    "open-size": "open_size",
    "header-size": "header_size",
    "database_version": "database_version",
}

# <tag> -> RepoMdRecord checksum attribute
_CHECKSUM_FIELDS = {
    "checksum": "checksum",
    "open-checksum": "open_checksum",
    "header-checksum": "header_checksum",
}

_DATA_TAGS = set(_INT_FIELDS) | set(_CHECKSUM_FIELDS) | {"location"}

_TAG_TAGS = ("content", "repo", "distro")


def _write_checksum(writer: XmlWriter, tag: str, checksum: Optional[Checksum]) -> None:
    if checksum is None:
        return
    checksum_type, digest = checksum.to_algorithm_and_digest()
    writer.element(tag, digest, {"type": checksum_type})


def _write_int(writer: XmlWriter, tag: str, value: Optional[int]) -> None:
    if value is not None:
        writer.element(tag, str(value))


class RepomdXml(MetadataFormat):
    """Codec for repomd.xml.

    Records are stored in :attr:`Repository.repomd_records` keyed by their
    ``type`` attribute; types this library does not parse are kept as-is so
    they are written back unchanged.
    """

    filename = "repomd.xml"
    mdtype = "repomd"
    root_tag = "repomd"

    def load(self, repository: Repository, reader: XmlReader) -> None:
        reader.expect_root(self.root_tag)
        in_tags = False
        for event, tag, elem in reader:
            if event == "start":
                if tag == "data":
                    repository.add_repomd_record(self._read_data(reader, elem))
                elif tag == "tags":
                    in_tags = True
                elif tag == "revision" or (in_tags and tag in _TAG_TAGS):
                    continue
                elif tag != self.root_tag:
                    reader.skip(elem)
                continue

            if tag == "revision":
                repository.revision = get_text(elem)
            elif tag == "tags":
                in_tags = False
            elif tag == "content":
                repository.content_tags.append(get_text(elem))
            elif tag == "repo":
                repository.repo_tags.append(get_text(elem))
            elif tag == "distro":
                repository.distro_tags.append(
                    DistroTag(get_text(elem), get_attribute(elem, "cpeid"))
                )
        logger.debug(f"Loaded {len(repository.repomd_records)} records from {self.filename}")

    def _read_data(self, reader: XmlReader, record: Element) -> RepoMdRecord:
        reader.record = "data"
        mdtype = get_attribute(record, "type", required=True)
        repomd_record = RepoMdRecord(mdtype)
        has_location = False

        for event, tag, elem in reader:
            if event == "start":
                if tag not in _DATA_TAGS:
                    reader.skip(elem)
                continue

            if elem is record:
                break

            if tag in _CHECKSUM_FIELDS:
                setattr(repomd_record, _CHECKSUM_FIELDS[tag], read_checksum(elem))
            elif tag in _INT_FIELDS:
                setattr(repomd_record, _INT_FIELDS[tag], parse_int(get_text(elem), tag))
            elif tag == "location":
                repomd_record.location_href = get_attribute(elem, "href", required=True)
                repomd_record.location_base = get_attribute(elem, "xml:base")
                has_location = True
        else:
            reader.truncated()

        if repomd_record.checksum.is_unknown:
            raise MissingFieldError("checksum")
        if not has_location:
            raise MissingFieldError("location")

        reader.release(record)
        return repomd_record

    def write(self, repository: Repository, writer: XmlWriter) -> None:
        writer.start_document()
        writer.start(self.root_tag, {"xmlns": XML_NS_REPO, "xmlns:rpm": XML_NS_RPM})

        if repository.revision is not None:
            writer.element("revision", repository.revision)

        if repository.content_tags or repository.repo_tags or repository.distro_tags:
            writer.start("tags")
            for tag in repository.content_tags:
                writer.element("content", tag)
            for tag in repository.repo_tags:
                writer.element("repo", tag)
            for distro in repository.distro_tags:
                writer.element("distro", distro.name, {"cpeid": distro.cpeid})
            writer.end("tags")

        for record in repository.repomd_records.values():
            self.write_record(writer, record)

        writer.end(self.root_tag)
        writer.end_document()

    def write_record(self, writer: XmlWriter, record: RepoMdRecord) -> None:
        writer.start("data", {"type": record.mdtype})
        _write_checksum(writer, "checksum", record.checksum)
        _write_checksum(writer, "open-checksum", record.open_checksum)
        _write_checksum(writer, "header-checksum", record.header_checksum)
        writer.element(
            "location",
            attrs={"xml:base": record.location_base, "href": record.location_href},
        )
        _write_int(writer, "timestamp", record.timestamp)
        _write_int(writer, "size", record.size)
        _write_int(writer, "open-size", record.open_size)
        _write_int(writer, "header-size", record.header_size)
        _write_int(writer, "database_version", record.database_version)
        writer.end("data")
