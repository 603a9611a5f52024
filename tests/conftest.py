"""Shared fixtures: sample metadata documents and codec helpers."""

from __future__ import annotations

import io
from typing import Callable, Optional

import pytest

from rpmrepo_metadata.files import load_metadata_stream
from rpmrepo_metadata.formats import MetadataFormat
from rpmrepo_metadata.repository import Repository
from rpmrepo_metadata.xmlstream import XmlWriter

HTTPD_PKGID = "5f8f" * 16
TZDATA_PKGID = "0c1d" * 16

PRIMARY_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<metadata xmlns="http://linux.duke.edu/metadata/common" xmlns:rpm="http://linux.duke.edu/metadata/rpm" packages="2">
<package type="rpm">
  <name>httpd</name>
  <arch>x86_64</arch>
  <version epoch="0" ver="2.4.57" rel="5.el9"/>
  <checksum type="sha256" pkgid="YES">{HTTPD_PKGID}</checksum>
  <summary>Apache HTTP Server</summary>
  <description>The Apache HTTP Server is a powerful, efficient, and extensible
web server.</description>
  <packager>Red Hat, Inc. &lt;http://bugzilla.redhat.com/bugzilla&gt;</packager>
  <url>https://httpd.apache.org/</url>
  <time file="1700000000" build="1699990000"/>
  <size package="47000" installed="104000" archive="105000"/>
  <location href="Packages/h/httpd-2.4.57-5.el9.x86_64.rpm"/>
  <format>
    <rpm:license>ASL 2.0</rpm:license>
    <rpm:vendor>Red Hat, Inc.</rpm:vendor>
    <rpm:group>Unspecified</rpm:group>
    <rpm:buildhost>x86-64-01.build.example.com</rpm:buildhost>
    <rpm:sourcerpm>httpd-2.4.57-5.el9.src.rpm</rpm:sourcerpm>
    <rpm:header-range start="4504" end="17033"/>
    <rpm:provides>
      <rpm:entry name="httpd" flags="EQ" epoch="0" ver="2.4.57" rel="5.el9"/>
      <rpm:entry name="webserver"/>
    </rpm:provides>
    <rpm:requires>
      <rpm:entry name="/bin/sh" pre="1"/>
      <rpm:entry name="httpd-core" flags="GE" epoch="0" ver="2.4.57"/>
    </rpm:requires>
    <rpm:recommends>
      <rpm:entry name="mod_lua"/>
    </rpm:recommends>
    <file>/etc/httpd/conf/httpd.conf</file>
    <file type="dir">/etc/httpd</file>
    <file>/usr/sbin/httpd</file>
  </format>
</package>
<package type="rpm">
  <name>tzdata</name>
  <arch>noarch</arch>
  <version epoch="0" ver="2024a" rel="1.el9"/>
  <checksum type="sha256" pkgid="YES">{TZDATA_PKGID}</checksum>
  <summary>Timezone data</summary>
  <description/>
  <packager/>
  <url/>
  <time file="1700000100" build="1699990100"/>
  <size package="440000" installed="1700000" archive="1750000"/>
  <location xml:base="https://mirror.example.com/el9/" href="Packages/t/tzdata-2024a-1.el9.noarch.rpm"/>
  <format>
    <rpm:license>Public Domain</rpm:license>
    <rpm:vendor/>
    <rpm:group/>
    <rpm:buildhost/>
    <rpm:sourcerpm>tzdata-2024a-1.el9.src.rpm</rpm:sourcerpm>
    <rpm:header-range start="4504" end="9001"/>
  </format>
</package>
</metadata>
""".encode("utf-8")

FILELISTS_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<filelists xmlns="http://linux.duke.edu/metadata/filelists" packages="2">
<package pkgid="{HTTPD_PKGID}" name="httpd" arch="x86_64">
  <version epoch="0" ver="2.4.57" rel="5.el9"/>
  <file>/etc/httpd/conf/httpd.conf</file>
  <file type="dir">/etc/httpd</file>
  <file>/usr/sbin/httpd</file>
  <file>/usr/share/doc/httpd/README</file>
  <file type="ghost">/var/log/httpd/access_log</file>
</package>
<package pkgid="{TZDATA_PKGID}" name="tzdata" arch="noarch">
  <version epoch="0" ver="2024a" rel="1.el9"/>
  <file type="dir">/usr/share/zoneinfo</file>
  <file>/usr/share/zoneinfo/UTC</file>
</package>
</filelists>
""".encode("utf-8")

OTHER_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<otherdata xmlns="http://linux.duke.edu/metadata/other" packages="2">
<package pkgid="{HTTPD_PKGID}" name="httpd" arch="x86_64">
  <version epoch="0" ver="2.4.57" rel="5.el9"/>
  <changelog author="Luboš Uhliarik &lt;luhliari@redhat.com&gt; - 2.4.57-4" date="1688000000">- Resolves: #2217999 - rebuild</changelog>
  <changelog author="Luboš Uhliarik &lt;luhliari@redhat.com&gt; - 2.4.57-5" date="1690000000">- Resolves: #2222001 - mod_ssl: fix crash
- Resolves: #2222002 - update docs</changelog>
</package>
<package pkgid="{TZDATA_PKGID}" name="tzdata" arch="noarch">
  <version epoch="0" ver="2024a" rel="1.el9"/>
</package>
</otherdata>
""".encode("utf-8")


@pytest.fixture
def primary_xml() -> bytes:
    return PRIMARY_XML


@pytest.fixture
def filelists_xml() -> bytes:
    return FILELISTS_XML


@pytest.fixture
def other_xml() -> bytes:
    return OTHER_XML


def _load(
    fmt: MetadataFormat,
    data: bytes,
    repository: Optional[Repository] = None,
) -> Repository:
    repository = repository if repository is not None else Repository()
    load_metadata_stream(repository, fmt, io.BytesIO(data))
    return repository


def _dump(fmt: MetadataFormat, repository: Repository) -> bytes:
    output = io.BytesIO()
    fmt.write(repository, XmlWriter(output, indent_records=fmt.indent_records))
    return output.getvalue()


@pytest.fixture
def load_document() -> Callable[..., Repository]:
    """Load a document from bytes into a (new or given) Repository."""
    return _load


@pytest.fixture
def dump_document() -> Callable[[MetadataFormat, Repository], bytes]:
    """Serialize a Repository with a codec into bytes."""
    return _dump


@pytest.fixture
def loaded_repository(primary_xml: bytes, filelists_xml: bytes, other_xml: bytes) -> Repository:
    """Repository with primary, filelists and other loaded."""
    from rpmrepo_metadata.formats import FilelistsXml, OtherXml, PrimaryXml

    repository = _load(PrimaryXml(), primary_xml)
    _load(FilelistsXml(), filelists_xml, repository)
    _load(OtherXml(), other_xml, repository)
    return repository
