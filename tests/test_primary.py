"""Tests for the primary.xml codec."""

import pytest

from conftest import HTTPD_PKGID, PRIMARY_XML
from rpmrepo_metadata.errors import (
    IntFieldParseError,
    MetadataParseError,
    MissingAttributeError,
    MissingFieldError,
    MissingHeaderError,
    UnsupportedChecksumTypeError,
)
from rpmrepo_metadata.formats import PrimaryXml
from rpmrepo_metadata.models import (
    EVR,
    FileType,
    Package,
    PackageFile,
    Requirement,
    RequirementFlag,
    Sha256Checksum,
)
from rpmrepo_metadata.repository import Repository


def minimal_primary(package_body: str) -> bytes:
    """Wrap a single package body in a primary.xml document."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<metadata xmlns="http://linux.duke.edu/metadata/common" xmlns:rpm="http://linux.duke.edu/metadata/rpm" packages="1">
<package type="rpm">
{package_body}
</package>
</metadata>
""".encode("utf-8")


VALID_BODY = """  <name>foo</name>
  <arch>noarch</arch>
  <version epoch="0" ver="1.0" rel="1"/>
  <checksum type="sha256" pkgid="YES">{digest}</checksum>
  <location href="foo-1.0-1.noarch.rpm"/>""".format(digest="e" * 64)


class TestPrimaryLoad:
    """Test reading primary.xml."""

    def test_load_packages(self, load_document, primary_xml) -> None:
        """Test that every package is loaded in document order."""
        repository = load_document(PrimaryXml(), primary_xml)
        assert [p.name for p in repository.packages] == ["httpd", "tzdata"]

    def test_package_fields(self, load_document, primary_xml) -> None:
        """Test the fields of a fully populated package."""
        httpd = load_document(PrimaryXml(), primary_xml).packages[0]

        assert httpd.arch == "x86_64"
        assert httpd.evr == EVR("0", "2.4.57", "5.el9")
        assert httpd.checksum == Sha256Checksum(HTTPD_PKGID)
        assert httpd.pkgid == HTTPD_PKGID
        assert httpd.summary == "Apache HTTP Server"
        assert httpd.description.endswith("extensible\nweb server.")
        assert httpd.packager == "Red Hat, Inc. <http://bugzilla.redhat.com/bugzilla>"
        assert httpd.location_href == "Packages/h/httpd-2.4.57-5.el9.x86_64.rpm"
        assert httpd.location_base is None
        assert httpd.time.file == 1700000000
        assert httpd.time.build == 1699990000
        assert httpd.size.package == 47000
        assert httpd.size.archive == 105000
        assert httpd.license == "ASL 2.0"
        assert httpd.sourcerpm == "httpd-2.4.57-5.el9.src.rpm"
        assert httpd.header_range.start == 4504
        assert httpd.header_range.end == 17033

    def test_requirements(self, load_document, primary_xml) -> None:
        """Test dependency lists."""
        httpd = load_document(PrimaryXml(), primary_xml).packages[0]

        assert httpd.provides == [
            Requirement("httpd", RequirementFlag.EQ, "0", "2.4.57", "5.el9"),
            Requirement("webserver"),
        ]
        assert httpd.requires[0] == Requirement("/bin/sh", preinstall=True)
        assert httpd.requires[1].flags is RequirementFlag.GE
        assert httpd.requires[1].release is None
        assert [r.name for r in httpd.recommends] == ["mod_lua"]
        assert httpd.conflicts == []
        assert httpd.supplements == []

    def test_files(self, load_document, primary_xml) -> None:
        """Test the abbreviated file list."""
        httpd = load_document(PrimaryXml(), primary_xml).packages[0]
        assert httpd.files == [
            PackageFile("/etc/httpd/conf/httpd.conf"),
            PackageFile("/etc/httpd", FileType.DIR),
            PackageFile("/usr/sbin/httpd"),
        ]

    def test_empty_elements(self, load_document, primary_xml) -> None:
        """Test that empty elements load as empty strings."""
        tzdata = load_document(PrimaryXml(), primary_xml).packages[1]
        assert tzdata.description == ""
        assert tzdata.vendor == ""
        assert tzdata.location_base == "https://mirror.example.com/el9/"

    def test_appends_to_existing_packages(self, load_document, primary_xml) -> None:
        """Test that loading appends rather than replaces."""
        repository = Repository()
        repository.add_package(Package(name="existing", arch="noarch"))
        load_document(PrimaryXml(), primary_xml, repository)
        assert [p.name for p in repository.packages] == ["existing", "httpd", "tzdata"]

    def test_unknown_elements_are_skipped(self, load_document) -> None:
        """Test that unrecognized elements do not affect parsing."""
        body = VALID_BODY + """
  <x:extension xmlns:x="urn:example"><x:nested>data</x:nested><name>ignored</name></x:extension>
  <format>
    <rpm:license>MIT</rpm:license>
    <rpm:unknown-list><rpm:entry name="ignored"/></rpm:unknown-list>
  </format>"""
        data = minimal_primary(body).replace(
            b"<package type", b"<comment>not a package</comment>\n<package type"
        )
        repository = load_document(PrimaryXml(), data)

        assert len(repository.packages) == 1
        package = repository.packages[0]
        assert package.name == "foo"
        assert package.license == "MIT"
        assert package.provides == []


class TestPrimaryErrors:
    """Test error handling while reading primary.xml."""

    def test_missing_checksum(self, load_document) -> None:
        """Test that a package without checksum is rejected."""
        body = """  <name>foo</name>
  <arch>noarch</arch>
  <version epoch="0" ver="1.0" rel="1"/>"""
        with pytest.raises(MissingFieldError) as exc_info:
            load_document(PrimaryXml(), minimal_primary(body))
        assert exc_info.value.field == "checksum"

    def test_missing_name(self, load_document) -> None:
        """Test that a package without name is rejected."""
        body = VALID_BODY.replace("<name>foo</name>", "")
        with pytest.raises(MissingFieldError) as exc_info:
            load_document(PrimaryXml(), minimal_primary(body))
        assert exc_info.value.field == "name"

    def test_missing_arch(self, load_document) -> None:
        """Test that a package without arch is rejected."""
        body = VALID_BODY.replace("<arch>noarch</arch>", "")
        with pytest.raises(MissingFieldError) as exc_info:
            load_document(PrimaryXml(), minimal_primary(body))
        assert exc_info.value.field == "arch"

    def test_unsupported_checksum_type(self, load_document) -> None:
        """Test that an unknown checksum algorithm is rejected."""
        body = VALID_BODY.replace('type="sha256"', 'type="md5"')
        with pytest.raises(UnsupportedChecksumTypeError) as exc_info:
            load_document(PrimaryXml(), minimal_primary(body))
        assert exc_info.value.checksum_type == "md5"

    def test_checksum_without_type(self, load_document) -> None:
        """Test that a checksum element needs its type attribute."""
        body = VALID_BODY.replace('type="sha256" ', "")
        with pytest.raises(MissingAttributeError):
            load_document(PrimaryXml(), minimal_primary(body))

    def test_invalid_integer(self, load_document) -> None:
        """Test that non-numeric integer attributes are rejected."""
        body = VALID_BODY + '\n  <time file="yesterday" build="1"/>'
        with pytest.raises(IntFieldParseError) as exc_info:
            load_document(PrimaryXml(), minimal_primary(body))
        assert exc_info.value.field == "time.file"
        assert exc_info.value.value == "yesterday"

    def test_truncated_document(self, load_document) -> None:
        """Test that a document ending inside a record is rejected."""
        truncated = PRIMARY_XML[: PRIMARY_XML.index(b"<rpm:provides>")]
        with pytest.raises(MetadataParseError):
            load_document(PrimaryXml(), truncated)

    def test_truncation_keeps_complete_records(self, load_document) -> None:
        """Test that records completed before the failure stay loaded."""
        repository = Repository()
        truncated = PRIMARY_XML[: PRIMARY_XML.index(b"<name>tzdata</name>")]
        with pytest.raises(MetadataParseError):
            load_document(PrimaryXml(), truncated, repository)
        assert [p.name for p in repository.packages] == ["httpd"]

    def test_malformed_xml(self, load_document) -> None:
        """Test that XML syntax errors are reported."""
        with pytest.raises(MetadataParseError):
            load_document(PrimaryXml(), minimal_primary(VALID_BODY + "\n  <name>broken</arch>"))

    def test_empty_document(self, load_document) -> None:
        """Test that an empty document has no header."""
        with pytest.raises(MissingHeaderError) as exc_info:
            load_document(PrimaryXml(), b"")
        assert exc_info.value.expected == "metadata"

    def test_wrong_root(self, load_document, filelists_xml) -> None:
        """Test that another document type is rejected."""
        with pytest.raises(MissingHeaderError) as exc_info:
            load_document(PrimaryXml(), filelists_xml)
        assert exc_info.value.found == "filelists"


class TestPrimaryWrite:
    """Test writing primary.xml."""

    def test_rewrite_is_identical(self, load_document, dump_document, primary_xml) -> None:
        """Test that loading and writing reproduces the document."""
        repository = load_document(PrimaryXml(), primary_xml)
        assert dump_document(PrimaryXml(), repository) == primary_xml

    def test_empty_repository(self, dump_document) -> None:
        """Test writing a repository without packages."""
        assert dump_document(PrimaryXml(), Repository()) == (
            b'<?xml version="1.0" encoding="UTF-8"?>\n'
            b'<metadata xmlns="http://linux.duke.edu/metadata/common" '
            b'xmlns:rpm="http://linux.duke.edu/metadata/rpm" packages="0"/>\n'
        )

    def test_only_primary_files_are_written(self, load_document, dump_document) -> None:
        """Test that files outside the primary set go to filelists.xml only."""
        repository = Repository()
        package = Package.new(
            "foo", EVR("", "1.0", "1"), "noarch", Sha256Checksum("e" * 64), "foo-1.0-1.noarch.rpm"
        )
        package.files = [PackageFile("/usr/bin/foo"), PackageFile("/usr/share/foo/data")]
        repository.add_package(package)

        output = dump_document(PrimaryXml(), repository)
        assert b"<file>/usr/bin/foo</file>" in output
        assert b"/usr/share/foo/data" not in output

    def test_loaded_file_list_is_written_unchanged(self, load_document, dump_document) -> None:
        """Test that files read from primary.xml are written back as read."""
        body = VALID_BODY + """
  <format>
    <file>/usr/bin/foo</file>
    <file>/usr/share/doc/foo/README</file>
  </format>"""
        repository = load_document(PrimaryXml(), minimal_primary(body))

        reloaded = load_document(PrimaryXml(), dump_document(PrimaryXml(), repository))
        assert reloaded.packages[0].files == [
            PackageFile("/usr/bin/foo"),
            PackageFile("/usr/share/doc/foo/README"),
        ]
        assert reloaded.packages == repository.packages

    def test_missing_epoch_written_as_zero(self, dump_document) -> None:
        """Test that an empty epoch is written as 0."""
        repository = Repository()
        repository.add_package(
            Package.new("foo", EVR("", "1.0", "1"), "noarch", Sha256Checksum("e" * 64), "foo.rpm")
        )
        assert b'<version epoch="0" ver="1.0" rel="1"/>' in dump_document(PrimaryXml(), repository)

    def test_escaping(self, load_document, dump_document) -> None:
        """Test that markup characters survive a round trip."""
        repository = Repository()
        package = Package.new("foo", EVR("", "1", "1"), "noarch", Sha256Checksum("e" * 64), "a&b.rpm")
        package.summary = 'Tools for <xml> & "quotes"'
        repository.add_package(package)

        output = dump_document(PrimaryXml(), repository)
        assert b'href="a&amp;b.rpm"' in output
        reloaded = load_document(PrimaryXml(), output).packages[0]
        assert reloaded.summary == package.summary
        assert reloaded.location_href == "a&b.rpm"

    def test_carriage_return_in_description(self, load_document, dump_document) -> None:
        """Test that CRLF line endings in text fields are kept."""
        body = VALID_BODY + "\n  <description>line1&#13;\nline2</description>"
        repository = load_document(PrimaryXml(), minimal_primary(body))
        assert repository.packages[0].description == "line1\r\nline2"

        reloaded = load_document(PrimaryXml(), dump_document(PrimaryXml(), repository))
        assert reloaded.packages[0].description == "line1\r\nline2"

    def test_unknown_checksum_cannot_be_written(self, dump_document) -> None:
        """Test that a package without checksum cannot be serialized."""
        repository = Repository()
        repository.add_package(Package(name="foo", arch="noarch"))
        with pytest.raises(TypeError):
            dump_document(PrimaryXml(), repository)
