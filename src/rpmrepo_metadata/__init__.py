"""
rpmrepo-metadata - RPM repository metadata codec

Reads and writes the repodata/ documents of RPM repositories (repomd.xml,
primary.xml, filelists.xml, other.xml and updateinfo.xml) to and from an
in-memory Repository of Package and UpdateRecord objects.
"""

__version__ = "0.1.0"

# Make version accessible
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

try:
    __version__ = _version("rpmrepo-metadata")
except PackageNotFoundError:
    # Package not installed yet
    pass

from rpmrepo_metadata.errors import (  # noqa: E402
    IntFieldParseError,
    MetadataDecodeError,
    MetadataError,
    MetadataIOError,
    MetadataParseError,
    MissingAttributeError,
    MissingFieldError,
    MissingHeaderError,
    UnknownPackageError,
    UnsupportedChecksumTypeError,
    UnsupportedCompressionError,
)
from rpmrepo_metadata.files import (  # noqa: E402
    load_metadata,
    load_repository,
    write_metadata,
    write_repository,
)
from rpmrepo_metadata.mdtypes import MetadataType  # noqa: E402
from rpmrepo_metadata.models import (  # noqa: E402
    EVR,
    Changelog,
    Checksum,
    FileType,
    Nevra,
    Package,
    PackageFile,
    RepoMdRecord,
    Requirement,
    RequirementFlag,
)
from rpmrepo_metadata.repository import Repository  # noqa: E402

__all__ = [
    "EVR",
    "Changelog",
    "Checksum",
    "FileType",
    "IntFieldParseError",
    "MetadataDecodeError",
    "MetadataError",
    "MetadataIOError",
    "MetadataParseError",
    "MetadataType",
    "MissingAttributeError",
    "MissingFieldError",
    "MissingHeaderError",
    "Nevra",
    "Package",
    "PackageFile",
    "RepoMdRecord",
    "Repository",
    "Requirement",
    "RequirementFlag",
    "UnknownPackageError",
    "UnsupportedChecksumTypeError",
    "UnsupportedCompressionError",
    "load_metadata",
    "load_repository",
    "write_metadata",
    "write_repository",
]
