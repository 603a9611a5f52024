"""
Metadata document codecs.
"""

from __future__ import annotations

from typing import Optional

from rpmrepo_metadata.formats.base import (
    UNMATCHED_POLICIES,
    MetadataFormat,
    PackageDetailsFormat,
)
from rpmrepo_metadata.formats.filelists import FilelistsXml
from rpmrepo_metadata.formats.other import OtherXml
from rpmrepo_metadata.formats.primary import PrimaryXml
from rpmrepo_metadata.formats.repomd import RepomdXml
from rpmrepo_metadata.formats.updateinfo import UpdateinfoXml
from rpmrepo_metadata.mdtypes import MetadataType

_FORMATS: dict[MetadataType, type[MetadataFormat]] = {
    MetadataType.PRIMARY: PrimaryXml,
    MetadataType.FILELISTS: FilelistsXml,
    MetadataType.OTHER: OtherXml,
    MetadataType.UPDATEINFO: UpdateinfoXml,
}


def get_format(mdtype: str | MetadataType) -> Optional[type[MetadataFormat]]:
    """Return the codec class for a repomd record type.

    Only plain XML documents have a codec; sqlite (``*_db``), zchunk
    (``*_zck``) and unknown record types return None.

    Args:
        mdtype: repomd ``type`` token or MetadataType

    Returns:
        Codec class or None
    """
    if isinstance(mdtype, str):
        mdtype = MetadataType.from_token(mdtype)
    return _FORMATS.get(mdtype)


__all__ = [
    "MetadataFormat",
    "PackageDetailsFormat",
    "UNMATCHED_POLICIES",
    "PrimaryXml",
    "FilelistsXml",
    "OtherXml",
    "RepomdXml",
    "UpdateinfoXml",
    "get_format",
]
