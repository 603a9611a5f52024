"""
Update information (errata) records.

These dataclasses describe the entries of updateinfo.xml: security
advisories, bug fixes and enhancements, and the package sets they apply to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from rpmrepo_metadata.models import Checksum


@dataclass
class UpdateReference:
    """External reference (bugzilla, CVE, ...) of an update."""

    href: str = ""
    id: str = ""
    title: str = ""
    reftype: str = ""


@dataclass
class UpdateCollectionModule:
    """Module stream a collection is scoped to."""

    name: str = ""
    stream: str = ""
    version: Optional[int] = None
    context: str = ""
    arch: str = ""


@dataclass
class UpdateCollectionPackage:
    """Package reference in an update collection."""

    name: str = ""
    version: str = ""
    release: str = ""
    epoch: str = "0"
    arch: str = ""
    src: str = ""
    filename: str = ""
    checksum: Optional[Checksum] = None
    reboot_suggested: bool = False
    restart_suggested: bool = False
    relogin_suggested: bool = False

    @property
    def nvra(self) -> str:
        return f"{self.name}-{self.version}-{self.release}.{self.arch}"


@dataclass
class UpdateCollection:
    """Named set of packages, optionally scoped to a module stream."""

    name: str = ""
    shortname: str = ""
    module: Optional[UpdateCollectionModule] = None
    packages: list[UpdateCollectionPackage] = field(default_factory=list)


@dataclass
class UpdateRecord:
    """Errata/update information."""

    id: str = ""
    # "from" attribute
    from_: str = ""
    update_type: str = ""
    status: str = ""
    version: str = ""
    title: str = ""
    issued_date: Optional[str] = None
    updated_date: Optional[str] = None
    rights: str = ""
    release: str = ""
    pushcount: Optional[str] = None
    severity: str = ""
    summary: str = ""
    description: str = ""
    solution: str = ""
    reboot_suggested: bool = False
    references: list[UpdateReference] = field(default_factory=list)
    pkglist: list[UpdateCollection] = field(default_factory=list)
