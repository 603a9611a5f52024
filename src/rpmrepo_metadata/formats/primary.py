"""
primary.xml: package summaries, dependencies and the abbreviated file list.
"""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree.ElementTree import Element

from rpmrepo_metadata.errors import MetadataParseError, MissingFieldError
from rpmrepo_metadata.formats.base import (
    MetadataFormat,
    read_checksum,
    read_version,
    version_attributes,
)
from rpmrepo_metadata.mdtypes import METADATA_PRIMARY, XML_NS_COMMON, XML_NS_RPM
from rpmrepo_metadata.models import (
    REQUIREMENT_KINDS,
    FileType,
    HeaderRange,
    Package,
    PackageFile,
    Requirement,
    RequirementFlag,
    Size,
    Time,
)
from rpmrepo_metadata.repository import Repository
from rpmrepo_metadata.xmlstream import (
    XmlReader,
    XmlWriter,
    get_attribute,
    get_int_attribute,
    get_text,
)

logger = logging.getLogger(__name__)

# <tag> -> Package attribute holding its text
_TEXT_FIELDS = {
    "name": "name",
    "arch": "arch",
    "summary": "summary",
    "description": "description",
    "packager": "packager",
    "url": "url",
    "rpm:license": "license",
    "rpm:vendor": "vendor",
    "rpm:group": "group",
    "rpm:buildhost": "buildhost",
    "rpm:sourcerpm": "sourcerpm",
}

# <rpm:provides> -> "provides", ...
_REQUIREMENT_TAGS = {f"rpm:{kind}": kind for kind in REQUIREMENT_KINDS}

_KNOWN_TAGS = (
    set(_TEXT_FIELDS)
    | set(_REQUIREMENT_TAGS)
    | {
        "version",
        "checksum",
        "time",
        "size",
        "location",
        "format",
        "rpm:header-range",
        "rpm:entry",
        "file",
    }
)


def read_requirement(elem: Element) -> Requirement:
    """Parse an ``<rpm:entry>`` element."""
    name = get_attribute(elem, "name", required=True)
    flags = elem.get("flags")
    try:
        flag = RequirementFlag(flags) if flags else None
    except ValueError:
        raise MetadataParseError(f"Unknown requirement flags: {flags}") from None
    return Requirement(
        name=name,
        flags=flag,
        epoch=elem.get("epoch"),
        version=elem.get("ver"),
        release=elem.get("rel"),
        preinstall=elem.get("pre") in ("1", "true", "True"),
    )


def requirement_attributes(requirement: Requirement) -> dict[str, Optional[str]]:
    return {
        "name": requirement.name,
        "flags": requirement.flags.value if requirement.flags else None,
        "epoch": requirement.epoch,
        "ver": requirement.version,
        "rel": requirement.release,
        "pre": "1" if requirement.preinstall else None,
    }


def read_package_file(elem: Element) -> PackageFile:
    return PackageFile(get_text(elem), FileType.from_token(elem.get("type")))


def write_package_file(writer: XmlWriter, package_file: PackageFile) -> None:
    filetype = None if package_file.filetype is FileType.FILE else package_file.filetype.value
    writer.element("file", package_file.path, {"type": filetype})


def _int_str(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


class PrimaryXml(MetadataFormat):
    """Codec for primary.xml.

    Every ``<package>`` becomes a new Package appended to the repository.
    ``name``, ``arch`` and ``checksum`` are required; everything else
    defaults when absent.
    """

    filename = "primary.xml"
    mdtype = METADATA_PRIMARY
    root_tag = "metadata"
    indent_records = False

    def load(self, repository: Repository, reader: XmlReader) -> None:
        reader.expect_root(self.root_tag)
        count = 0
        for event, tag, elem in reader:
            if event != "start":
                continue
            if tag == "package":
                repository.add_package(self._read_package(reader, elem))
                count += 1
            else:
                reader.skip(elem)
        logger.debug(f"Loaded {count} packages from {self.filename}")

    def _read_package(self, reader: XmlReader, record: Element) -> Package:
        reader.record = "package"
        package = Package()
        requirements: Optional[list[Requirement]] = None

        for event, tag, elem in reader:
            if event == "start":
                if tag in _REQUIREMENT_TAGS:
                    requirements = getattr(package, _REQUIREMENT_TAGS[tag])
                elif tag not in _KNOWN_TAGS:
                    reader.skip(elem)
                continue

            if elem is record:
                break

            field = _TEXT_FIELDS.get(tag)
            if field is not None:
                setattr(package, field, get_text(elem))
            elif tag == "version":
                package.evr = read_version(elem)
            elif tag == "checksum":
                package.checksum = read_checksum(elem)
            elif tag == "time":
                package.time = Time(
                    file=get_int_attribute(elem, "file", "time.file"),
                    build=get_int_attribute(elem, "build", "time.build"),
                )
            elif tag == "size":
                package.size = Size(
                    package=get_int_attribute(elem, "package", "size.package"),
                    installed=get_int_attribute(elem, "installed", "size.installed"),
                    archive=get_int_attribute(elem, "archive", "size.archive"),
                )
            elif tag == "location":
                package.location_href = get_attribute(elem, "href", required=True)
                package.location_base = get_attribute(elem, "xml:base")
            elif tag == "rpm:header-range":
                package.header_range = HeaderRange(
                    start=get_int_attribute(elem, "start", "header-range.start"),
                    end=get_int_attribute(elem, "end", "header-range.end"),
                )
            elif tag == "rpm:entry":
                if requirements is not None:
                    requirements.append(read_requirement(elem))
            elif tag in _REQUIREMENT_TAGS:
                requirements = None
            elif tag == "file":
                package.files.append(read_package_file(elem))
        else:
            reader.truncated()

        if not package.name:
            raise MissingFieldError("name")
        if not package.arch:
            raise MissingFieldError("arch")
        if package.checksum.is_unknown:
            raise MissingFieldError("checksum")

        package.files_complete = False
        reader.release(record)
        return package

    def write(self, repository: Repository, writer: XmlWriter) -> None:
        writer.start_document()
        writer.start(
            self.root_tag,
            {
                "xmlns": XML_NS_COMMON,
                "xmlns:rpm": XML_NS_RPM,
                "packages": str(len(repository.packages)),
            },
        )
        for package in repository.packages:
            self.write_package(writer, package)
        writer.end(self.root_tag)
        writer.end_document()
        logger.debug(f"Wrote {len(repository.packages)} packages to {self.filename}")

    def write_package(self, writer: XmlWriter, package: Package) -> None:
        checksum_type, digest = package.checksum.to_algorithm_and_digest()

        writer.start("package", {"type": "rpm"})
        writer.element("name", package.name)
        writer.element("arch", package.arch)
        writer.element("version", attrs=version_attributes(package.evr))
        writer.element("checksum", digest, {"type": checksum_type, "pkgid": "YES"})
        writer.element("summary", package.summary)
        writer.element("description", package.description)
        writer.element("packager", package.packager)
        writer.element("url", package.url)
        writer.element(
            "time",
            attrs={"file": _int_str(package.time.file), "build": _int_str(package.time.build)},
        )
        writer.element(
            "size",
            attrs={
                "package": _int_str(package.size.package),
                "installed": _int_str(package.size.installed),
                "archive": _int_str(package.size.archive),
            },
        )
        writer.element(
            "location",
            attrs={"xml:base": package.location_base, "href": package.location_href},
        )

        writer.start("format")
        writer.element("rpm:license", package.license)
        writer.element("rpm:vendor", package.vendor)
        writer.element("rpm:group", package.group)
        writer.element("rpm:buildhost", package.buildhost)
        writer.element("rpm:sourcerpm", package.sourcerpm)
        writer.element(
            "rpm:header-range",
            attrs={
                "start": _int_str(package.header_range.start),
                "end": _int_str(package.header_range.end),
            },
        )
        for kind in REQUIREMENT_KINDS:
            entries: list[Requirement] = getattr(package, kind)
            if not entries:
                continue
            writer.start(f"rpm:{kind}")
            for requirement in entries:
                writer.element("rpm:entry", attrs=requirement_attributes(requirement))
            writer.end(f"rpm:{kind}")
        for package_file in package.primary_files():
            write_package_file(writer, package_file)
        writer.end("format")

        writer.end("package")
