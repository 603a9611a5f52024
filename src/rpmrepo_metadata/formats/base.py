"""
Base interface for repository metadata formats.

Each metadata document (repomd.xml, primary.xml, filelists.xml, other.xml,
updateinfo.xml) is handled by one subclass that loads records from an
XmlReader into a Repository and writes them back through an XmlWriter.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Optional
from xml.etree.ElementTree import Element

from rpmrepo_metadata.errors import MissingFieldError, UnknownPackageError
from rpmrepo_metadata.models import EVR, Checksum, Nevra, Package, UnknownChecksum
from rpmrepo_metadata.xmlstream import XmlReader, XmlWriter, get_attribute, get_text

if TYPE_CHECKING:
    from rpmrepo_metadata.repository import Repository

logger = logging.getLogger(__name__)


class MetadataFormat(ABC):
    """Abstract base class for metadata document codecs.

    Codecs hold no state between calls; the Repository passed to
    :meth:`load` or :meth:`write` is owned by the caller for the duration
    of the call.
    """

    # Canonical (uncompressed) file name, e.g. "primary.xml"
    filename: ClassVar[str]
    # repomd.xml <data type=...> token, e.g. "primary"
    mdtype: ClassVar[str]
    # Expected root element
    root_tag: ClassVar[str]
    # Indent records one level below the root element
    indent_records: ClassVar[bool] = True

    @abstractmethod
    def load(self, repository: Repository, reader: XmlReader) -> None:
        """Read the document from ``reader`` into ``repository``.

        Args:
            repository: Repository to populate (records are appended or merged)
            reader: Streaming XML reader positioned at the document start

        Raises:
            MetadataError: On malformed documents or missing required data
        """
        raise NotImplementedError

    @abstractmethod
    def write(self, repository: Repository, writer: XmlWriter) -> None:
        """Write the relevant records of ``repository`` to ``writer``.

        Args:
            repository: Repository to serialize
            writer: Streaming XML writer

        Raises:
            TypeError: If a record still holds an unknown checksum
        """
        raise NotImplementedError


def read_checksum(elem: Element) -> Checksum:
    """Build a Checksum from a ``<checksum type="...">digest</checksum>`` style element.

    Raises:
        MissingAttributeError: If the ``type`` attribute is missing
        UnsupportedChecksumTypeError: If the type is unknown
    """
    checksum_type = get_attribute(elem, "type", required=True)
    return Checksum.from_algorithm_and_digest(checksum_type, get_text(elem))


def read_version(elem: Element) -> EVR:
    """Build an EVR from a ``<version epoch="" ver="" rel=""/>`` element."""
    return EVR(
        elem.get("epoch") or "",
        elem.get("ver") or "",
        elem.get("rel") or "",
    )


def version_attributes(evr: EVR) -> dict[str, Optional[str]]:
    return {"epoch": evr.epoch or "0", "ver": evr.version, "rel": evr.release}


UNMATCHED_POLICIES = ("error", "append", "skip")


class PackageDetailsFormat(MetadataFormat):
    """Shared reader/writer for filelists.xml and other.xml.

    Both documents hold one ``<package pkgid="" name="" arch="">`` record
    per primary.xml package, with a ``<version>`` child followed by the
    format specific details. Records are merged into the package with the
    same NEVRA; packages are normally listed in primary order, so the
    package at the same position is tried first.

    Args:
        unmatched_packages: What to do with a record whose NEVRA matches no
            package: "error" raises UnknownPackageError, "append" adds a new
            package carrying only the record's data, "skip" drops it.
    """

    # Default namespace of the document
    namespace: ClassVar[str]

    def __init__(self, unmatched_packages: str = "error"):
        if unmatched_packages not in UNMATCHED_POLICIES:
            raise ValueError(
                f"Invalid unmatched_packages policy: {unmatched_packages}. "
                f"Must be one of: {', '.join(UNMATCHED_POLICIES)}"
            )
        self.unmatched_packages = unmatched_packages

    @abstractmethod
    def read_detail(self, tag: str, elem: Element, details: list) -> None:
        """Handle the end event of a detail child element."""
        raise NotImplementedError

    @abstractmethod
    def merge(self, package: Package, details: list) -> None:
        """Store the details read for one record on ``package``."""
        raise NotImplementedError

    @abstractmethod
    def write_details(self, writer: XmlWriter, package: Package) -> None:
        raise NotImplementedError

    @abstractmethod
    def is_detail(self, tag: str) -> bool:
        """Return True for the child elements :meth:`read_detail` handles."""
        raise NotImplementedError

    def load(self, repository: Repository, reader: XmlReader) -> None:
        reader.expect_root(self.root_tag)
        position = 0
        merged = 0
        for event, tag, elem in reader:
            if event != "start":
                continue
            if tag != "package":
                reader.skip(elem)
                continue
            if self._read_package(repository, reader, elem, position):
                merged += 1
            position += 1
        logger.debug(f"Merged {merged} of {position} records from {self.filename}")

    def _read_package(
        self,
        repository: Repository,
        reader: XmlReader,
        record: Element,
        position: int,
    ) -> bool:
        reader.record = "package"
        name = record.get("name")
        arch = record.get("arch")
        pkgid = record.get("pkgid") or ""
        evr = EVR()
        details: list = []

        for event, tag, elem in reader:
            if event == "start":
                if tag != "version" and not self.is_detail(tag):
                    reader.skip(elem)
                continue
            if elem is record:
                break
            if tag == "version":
                evr = read_version(elem)
            else:
                self.read_detail(tag, elem, details)
        else:
            reader.truncated()

        if not name:
            raise MissingFieldError("name")
        if not arch:
            raise MissingFieldError("arch")
        reader.release(record)

        nevra = Nevra(name, evr, arch)
        package = repository.find_package(nevra, position)
        if package is None:
            if self.unmatched_packages == "error":
                raise UnknownPackageError(str(nevra))
            if self.unmatched_packages == "skip":
                logger.warning(f"Skipping {self.filename} record for unknown package {nevra}")
                return False
            logger.debug(f"Adding package {nevra} found only in {self.filename}")
            package = repository.add_package(
                Package(name=name, arch=arch, evr=evr, checksum=UnknownChecksum(pkgid))
            )
        self.merge(package, details)
        return True

    def write(self, repository: Repository, writer: XmlWriter) -> None:
        writer.start_document()
        writer.start(
            self.root_tag,
            {"xmlns": self.namespace, "packages": str(len(repository.packages))},
        )
        for package in repository.packages:
            writer.start(
                "package",
                {"pkgid": package_id(package), "name": package.name, "arch": package.arch},
            )
            writer.element("version", attrs=version_attributes(package.evr))
            self.write_details(writer, package)
            writer.end("package")
        writer.end(self.root_tag)
        writer.end_document()
        logger.debug(f"Wrote {len(repository.packages)} packages to {self.filename}")


def package_id(package: Package) -> str:
    """Digest written as ``pkgid``.

    Raises:
        TypeError: If the package has no checksum at all
    """
    if package.checksum.is_unknown and not package.checksum.digest:
        raise TypeError(f"Package {package.nevra()} has no checksum")
    return package.checksum.digest
