"""
Data model for RPM repository metadata.

These dataclasses hold one repository entry (Package) and the small value
records attached to it, plus the repomd.xml index record.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import ClassVar, NamedTuple, Optional

from rpmrepo_metadata.errors import (
    MetadataDecodeError,
    MetadataParseError,
    UnsupportedChecksumTypeError,
)
from rpmrepo_metadata.evr import canonical_segments, compare_evr, split_evr


@dataclass(frozen=True)
class Checksum:
    """Hex digest tagged with the algorithm that produced it.

    Use the concrete subclasses (or :meth:`from_algorithm_and_digest`);
    equality and hashing cover both the algorithm and the digest.
    """

    digest: str = ""

    algorithm: ClassVar[Optional[str]] = None

    @classmethod
    def from_algorithm_and_digest(cls, algorithm: str | bytes, digest: str | bytes) -> Checksum:
        """Build a typed checksum from a metadata ``type`` token and digest.

        Args:
            algorithm: Token as found in metadata ("sha", "sha1", "sha256", ...)
            digest: Hex digest

        Returns:
            Checksum subclass instance for the algorithm

        Raises:
            UnsupportedChecksumTypeError: If the algorithm token is unknown
            MetadataDecodeError: If a bytes argument is not valid UTF-8
        """
        algorithm = _decode(algorithm, "checksum type")
        digest = _decode(digest, "checksum")
        try:
            checksum_class = _CHECKSUM_TYPES[algorithm]
        except KeyError:
            raise UnsupportedChecksumTypeError(algorithm) from None
        return checksum_class(digest)

    @classmethod
    def unknown(cls) -> UnknownChecksum:
        return UnknownChecksum()

    @staticmethod
    def hasher(algorithm: str) -> "hashlib._Hash":
        """Return a fresh hashlib object for a metadata algorithm token."""
        try:
            checksum_class = _CHECKSUM_TYPES[algorithm]
        except KeyError:
            raise UnsupportedChecksumTypeError(algorithm) from None
        return hashlib.new(checksum_class.algorithm)

    def to_algorithm_and_digest(self) -> tuple[str, str]:
        """Return ``(algorithm, digest)`` for serialization.

        Raises:
            TypeError: On an unknown checksum, which only a record that was
                never populated can hold
        """
        if self.algorithm is None:
            raise TypeError("Cannot take value of a checksum of unknown type")
        return self.algorithm, self.digest

    @property
    def is_unknown(self) -> bool:
        return self.algorithm is None


class Sha1Checksum(Checksum):
    algorithm = "sha1"


class Sha256Checksum(Checksum):
    algorithm = "sha256"


class Sha384Checksum(Checksum):
    algorithm = "sha384"


class Sha512Checksum(Checksum):
    algorithm = "sha512"


class UnknownChecksum(Checksum):
    """Placeholder held by a default-constructed record."""


_CHECKSUM_TYPES: dict[str, type[Checksum]] = {
    "sha": Sha1Checksum,
    "sha1": Sha1Checksum,
    "sha256": Sha256Checksum,
    "sha384": Sha384Checksum,
    "sha512": Sha512Checksum,
}

CHECKSUM_ALGORITHMS = tuple(_CHECKSUM_TYPES)


def _decode(value: str | bytes, what: str) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MetadataDecodeError(f"Invalid UTF-8 in {what}: {e}") from e
    return value


@total_ordering
@dataclass(frozen=True, eq=False)
class EVR:
    """Epoch, version and release of a package.

    Ordering and equality follow the RPM segment comparison, so
    ``EVR("", "1.0", "1") == EVR("0", "1.0", "1")``.
    """

    epoch: str = ""
    version: str = ""
    release: str = ""

    @classmethod
    def from_string(cls, value: str) -> EVR:
        """Parse ``[epoch:]version[-release]``."""
        return cls(*split_evr(value))

    def as_tuple(self) -> tuple[str, str, str]:
        return self.epoch, self.version, self.release

    def compare(self, other: EVR) -> int:
        return compare_evr(self.as_tuple(), other.as_tuple())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EVR):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: EVR) -> bool:
        if not isinstance(other, EVR):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(
            (
                canonical_segments(self.epoch or "0"),
                canonical_segments(self.version),
                canonical_segments(self.release),
            )
        )

    def __str__(self) -> str:
        value = f"{self.version}-{self.release}" if self.release else self.version
        if self.epoch:
            value = f"{self.epoch}:{value}"
        return value


class RequirementFlag(str, Enum):
    """Comparison operator of a dependency entry."""

    LT = "LT"
    GT = "GT"
    EQ = "EQ"
    LE = "LE"
    GE = "GE"


@dataclass
class Requirement:
    """One Provides/Requires/Conflicts/... entry.

    The relation kind is given by the Package list the entry lives in.
    """

    name: str
    flags: Optional[RequirementFlag] = None
    epoch: Optional[str] = None
    version: Optional[str] = None
    release: Optional[str] = None
    preinstall: bool = False


class FileType(str, Enum):
    FILE = "file"
    DIR = "dir"
    GHOST = "ghost"

    @classmethod
    def from_token(cls, token: str | None) -> FileType:
        if token is None:
            return cls.FILE
        try:
            return cls(token)
        except ValueError:
            raise MetadataParseError(f"Unknown file type: {token}") from None


@dataclass
class PackageFile:
    path: str
    filetype: FileType = FileType.FILE


@dataclass
class Changelog:
    author: str
    date: int
    description: str


@dataclass
class Time:
    file: Optional[int] = None
    build: Optional[int] = None


@dataclass
class Size:
    package: Optional[int] = None
    installed: Optional[int] = None
    archive: Optional[int] = None


@dataclass
class HeaderRange:
    start: Optional[int] = None
    end: Optional[int] = None


class Nevra(NamedTuple):
    """Identity key of a package build (name, epoch-version-release, arch)."""

    name: str
    evr: EVR
    arch: str

    def __str__(self) -> str:
        return f"{self.name}-{self.evr}.{self.arch}"


# Files listed in primary.xml in addition to filelists.xml
_PRIMARY_FILE_PREFIXES = ("/etc/",)
_PRIMARY_FILE_MARKER = "bin/"
_PRIMARY_FILE_EXTRA = ("/usr/lib/sendmail",)


def is_primary_file(path: str) -> bool:
    """Return True if ``path`` belongs in primary.xml's abbreviated file list."""
    return (
        path.startswith(_PRIMARY_FILE_PREFIXES)
        or _PRIMARY_FILE_MARKER in path
        or path in _PRIMARY_FILE_EXTRA
    )


@dataclass
class Package:
    """One repository entry, as described by primary, filelists and other."""

    name: str = ""
    arch: str = ""
    evr: EVR = field(default_factory=EVR)
    checksum: Checksum = field(default_factory=Checksum.unknown)
    location_href: str = ""
    location_base: Optional[str] = None
    summary: str = ""
    description: str = ""
    packager: str = ""
    url: str = ""
    time: Time = field(default_factory=Time)
    size: Size = field(default_factory=Size)

    # <format> fields
    license: str = ""
    vendor: str = ""
    group: str = ""
    buildhost: str = ""
    sourcerpm: str = ""
    header_range: HeaderRange = field(default_factory=HeaderRange)

    provides: list[Requirement] = field(default_factory=list)
    requires: list[Requirement] = field(default_factory=list)
    conflicts: list[Requirement] = field(default_factory=list)
    obsoletes: list[Requirement] = field(default_factory=list)
    suggests: list[Requirement] = field(default_factory=list)
    enhances: list[Requirement] = field(default_factory=list)
    recommends: list[Requirement] = field(default_factory=list)
    supplements: list[Requirement] = field(default_factory=list)

    changelogs: list[Changelog] = field(default_factory=list)
    files: list[PackageFile] = field(default_factory=list)
    # False while `files` only holds the abbreviated list read from primary.xml
    files_complete: bool = field(default=True, compare=False, repr=False)

    @classmethod
    def new(
        cls,
        name: str,
        evr: EVR,
        arch: str,
        checksum: Checksum,
        location_href: str,
    ) -> Package:
        return cls(
            name=name,
            arch=arch,
            evr=evr,
            checksum=checksum,
            location_href=location_href,
        )

    def nevra(self) -> Nevra:
        return Nevra(self.name, self.evr, self.arch)

    @property
    def pkgid(self) -> str:
        """Package checksum digest, as used by filelists.xml and other.xml."""
        return self.checksum.digest

    def primary_files(self) -> list[PackageFile]:
        """Files to list in primary.xml."""
        if not self.files_complete:
            return list(self.files)
        return [f for f in self.files if is_primary_file(f.path)]


# Order in which dependency lists appear inside <format>
REQUIREMENT_KINDS = (
    "provides",
    "requires",
    "conflicts",
    "obsoletes",
    "suggests",
    "enhances",
    "recommends",
    "supplements",
)


@dataclass
class DistroTag:
    name: str
    cpeid: Optional[str] = None


@dataclass
class RepoMdRecord:
    """One ``<data>`` entry of repomd.xml."""

    # Record type ("primary", "filelists_db", ...)
    mdtype: str
    # Relative location of the file in the repository
    location_href: str = ""
    location_base: Optional[str] = None
    # Mtime of the file
    timestamp: Optional[int] = None
    # Size and checksum of the file as stored (possibly compressed)
    size: Optional[int] = None
    checksum: Checksum = field(default_factory=Checksum.unknown)
    # Size and checksum of the decompressed content
    open_size: Optional[int] = None
    open_checksum: Optional[Checksum] = None
    # Zchunk header
    header_size: Optional[int] = None
    header_checksum: Optional[Checksum] = None
    # sqlite databases only
    database_version: Optional[int] = None
