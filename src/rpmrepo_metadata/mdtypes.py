"""
Namespace URIs and metadata type tokens used across repository metadata.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType

# Default namespace for primary.xml
XML_NS_COMMON = "http://linux.duke.edu/metadata/common"
# Default namespace for filelists.xml
XML_NS_FILELISTS = "http://linux.duke.edu/metadata/filelists"
# Default namespace for other.xml
XML_NS_OTHER = "http://linux.duke.edu/metadata/other"
# Default namespace for repomd.xml
XML_NS_REPO = "http://linux.duke.edu/metadata/repo"
# rpm: namespace (primary.xml and repomd.xml)
XML_NS_RPM = "http://linux.duke.edu/metadata/rpm"
XML_NS_XML = "http://www.w3.org/XML/1998/namespace"

# Prefix each known namespace is reported under by the XML reader
NAMESPACE_PREFIXES = MappingProxyType(
    {
        XML_NS_COMMON: "",
        XML_NS_FILELISTS: "",
        XML_NS_OTHER: "",
        XML_NS_REPO: "",
        XML_NS_RPM: "rpm",
        XML_NS_XML: "xml",
    }
)

METADATA_PRIMARY = "primary"
METADATA_FILELISTS = "filelists"
METADATA_OTHER = "other"
METADATA_PRIMARY_DB = "primary_db"
METADATA_FILELISTS_DB = "filelists_db"
METADATA_OTHER_DB = "other_db"
METADATA_PRIMARY_ZCK = "primary_zck"
METADATA_FILELISTS_ZCK = "filelists_zck"
METADATA_OTHER_ZCK = "other_zck"
METADATA_UPDATEINFO = "updateinfo"


class MetadataType(Enum):
    """Kind of a ``<data type=...>`` record in repomd.xml."""

    PRIMARY = METADATA_PRIMARY
    FILELISTS = METADATA_FILELISTS
    OTHER = METADATA_OTHER

    PRIMARY_ZCK = METADATA_PRIMARY_ZCK
    FILELISTS_ZCK = METADATA_FILELISTS_ZCK
    OTHER_ZCK = METADATA_OTHER_ZCK

    PRIMARY_DB = METADATA_PRIMARY_DB
    FILELISTS_DB = METADATA_FILELISTS_DB
    OTHER_DB = METADATA_OTHER_DB

    UPDATEINFO = METADATA_UPDATEINFO

    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> MetadataType:
        """Map a repomd ``type`` attribute to a MetadataType.

        Tokens this library cannot parse map to ``UNKNOWN`` instead of failing,
        so third-party records still round-trip through repomd.xml.
        """
        if token == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(token)
        except ValueError:
            return cls.UNKNOWN

    @property
    def base(self) -> MetadataType:
        """The XML document kind this record variant carries (``primary_zck`` -> ``primary``)."""
        return _BASE_TYPES.get(self, self)

    @property
    def filename(self) -> str | None:
        """Canonical uncompressed file name of the base document, if known."""
        return _FILENAMES.get(self.base)

    @property
    def is_database(self) -> bool:
        return self in (MetadataType.PRIMARY_DB, MetadataType.FILELISTS_DB, MetadataType.OTHER_DB)

    @property
    def is_zchunk(self) -> bool:
        return self in (
            MetadataType.PRIMARY_ZCK,
            MetadataType.FILELISTS_ZCK,
            MetadataType.OTHER_ZCK,
        )


_BASE_TYPES = MappingProxyType(
    {
        MetadataType.PRIMARY_DB: MetadataType.PRIMARY,
        MetadataType.PRIMARY_ZCK: MetadataType.PRIMARY,
        MetadataType.FILELISTS_DB: MetadataType.FILELISTS,
        MetadataType.FILELISTS_ZCK: MetadataType.FILELISTS,
        MetadataType.OTHER_DB: MetadataType.OTHER,
        MetadataType.OTHER_ZCK: MetadataType.OTHER,
    }
)

_FILENAMES = MappingProxyType(
    {
        MetadataType.PRIMARY: "primary.xml",
        MetadataType.FILELISTS: "filelists.xml",
        MetadataType.OTHER: "other.xml",
        MetadataType.UPDATEINFO: "updateinfo.xml",
    }
)
