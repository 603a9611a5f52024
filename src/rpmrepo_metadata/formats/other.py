"""
other.xml: package changelogs.
"""

from __future__ import annotations

from xml.etree.ElementTree import Element

from rpmrepo_metadata.formats.base import PackageDetailsFormat
from rpmrepo_metadata.mdtypes import METADATA_OTHER, XML_NS_OTHER
from rpmrepo_metadata.models import Changelog, Package
from rpmrepo_metadata.xmlstream import XmlWriter, get_attribute, get_text, parse_int


class OtherXml(PackageDetailsFormat):
    """Codec for other.xml.

    Changelog entries are kept in document order (oldest first, as rpm
    writes them); the loaded list replaces ``Package.changelogs``.
    """

    filename = "other.xml"
    mdtype = METADATA_OTHER
    root_tag = "otherdata"
    namespace = XML_NS_OTHER
    indent_records = False

    def is_detail(self, tag: str) -> bool:
        return tag == "changelog"

    def read_detail(self, tag: str, elem: Element, details: list[Changelog]) -> None:
        author = get_attribute(elem, "author", required=True)
        date = parse_int(get_attribute(elem, "date", required=True), "changelog.date")
        details.append(Changelog(author=author, date=date or 0, description=get_text(elem)))

    def merge(self, package: Package, details: list[Changelog]) -> None:
        package.changelogs = details

    def write_details(self, writer: XmlWriter, package: Package) -> None:
        for changelog in package.changelogs:
            writer.element(
                "changelog",
                changelog.description,
                {"author": changelog.author, "date": str(changelog.date)},
            )
