"""
filelists.xml: the complete file list of every package.
"""

from __future__ import annotations

from xml.etree.ElementTree import Element

from rpmrepo_metadata.formats.base import PackageDetailsFormat
from rpmrepo_metadata.formats.primary import read_package_file, write_package_file
from rpmrepo_metadata.mdtypes import METADATA_FILELISTS, XML_NS_FILELISTS
from rpmrepo_metadata.models import Package, PackageFile
from rpmrepo_metadata.xmlstream import XmlWriter


class FilelistsXml(PackageDetailsFormat):
    """Codec for filelists.xml.

    The loaded list replaces ``Package.files``, which primary.xml only
    fills with the abbreviated subset.
    """

    filename = "filelists.xml"
    mdtype = METADATA_FILELISTS
    root_tag = "filelists"
    namespace = XML_NS_FILELISTS
    indent_records = False

    def is_detail(self, tag: str) -> bool:
        return tag == "file"

    def read_detail(self, tag: str, elem: Element, details: list[PackageFile]) -> None:
        details.append(read_package_file(elem))

    def merge(self, package: Package, details: list[PackageFile]) -> None:
        package.files = details
        package.files_complete = True

    def write_details(self, writer: XmlWriter, package: Package) -> None:
        for package_file in package.files:
            write_package_file(writer, package_file)
