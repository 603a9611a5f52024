"""
Reading and writing metadata files and whole repodata/ directories.

Files are always sniffed for compression on read. On write, the size and
checksum of both the stored (compressed) file and the decompressed content
are computed while streaming, so the resulting RepoMdRecord is ready to be
listed in repomd.xml.
"""

from __future__ import annotations

import io
import logging
import time
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, Optional

from rpmrepo_metadata.compression import (
    CompressionFormat,
    add_compression_extension,
    detect_compression,
    sniff_and_wrap,
    wrap_for_write,
)
from rpmrepo_metadata.core.config import MetadataConfig
from rpmrepo_metadata.errors import MetadataIOError
from rpmrepo_metadata.formats import (
    FilelistsXml,
    MetadataFormat,
    OtherXml,
    PrimaryXml,
    RepomdXml,
    UpdateinfoXml,
)
from rpmrepo_metadata.mdtypes import METADATA_FILELISTS, METADATA_OTHER, METADATA_UPDATEINFO
from rpmrepo_metadata.models import Checksum, RepoMdRecord
from rpmrepo_metadata.repository import Repository
from rpmrepo_metadata.xmlstream import XmlReader, XmlWriter

logger = logging.getLogger(__name__)

REPODATA_DIR = "repodata"
REPOMD_FILENAME = "repomd.xml"


class _DigestWriter(io.RawIOBase):
    """Forwarding writer that counts and hashes everything written through it."""

    def __init__(self, stream: BinaryIO, checksum_type: str):
        self._stream = stream
        self._checksum_type = checksum_type
        self._hash = Checksum.hasher(checksum_type)
        self.size = 0

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # type: ignore[override]
        self._hash.update(data)
        self._stream.write(data)
        length = memoryview(data).nbytes
        self.size += length
        return length

    def checksum(self) -> Checksum:
        return Checksum.from_algorithm_and_digest(self._checksum_type, self._hash.hexdigest())


def load_metadata_stream(repository: Repository, fmt: MetadataFormat, stream: BinaryIO) -> CompressionFormat:
    """Load one metadata document from an open (possibly compressed) stream.

    Args:
        repository: Repository to populate
        fmt: Codec for the document
        stream: Readable binary stream; left open

    Returns:
        Detected compression of the stream
    """
    reader, compression = sniff_and_wrap(stream)
    try:
        fmt.load(repository, XmlReader(reader))
    finally:
        if reader is not stream:
            reader.close()
    return compression


def load_metadata(repository: Repository, fmt: MetadataFormat, path: Path) -> CompressionFormat:
    """Load one metadata file.

    Args:
        repository: Repository to populate
        fmt: Codec for the document
        path: File to read

    Returns:
        Detected compression of the file

    Raises:
        MetadataIOError: If the file cannot be opened
        MetadataError: On malformed content
    """
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise MetadataIOError(f"Cannot open {path}: {e}") from e
    with stream:
        compression = load_metadata_stream(repository, fmt, stream)
    named = detect_compression(Path(path).name)
    if named != compression:
        logger.warning(f"{path} is named as {named} but contains {compression} data")
    logger.debug(f"Loaded {path} ({compression})")
    return compression


def write_metadata(
    repository: Repository,
    fmt: MetadataFormat,
    path: Path,
    compression: CompressionFormat | str = "gzip",
    compression_level: Optional[int] = None,
    checksum_type: str = "sha256",
    location_href: Optional[str] = None,
) -> RepoMdRecord:
    """Write one metadata file and describe it as a repomd record.

    Args:
        repository: Repository to serialize
        fmt: Codec for the document
        path: Output file (its name should carry the compression extension)
        compression: Compression format or alias
        compression_level: Compressor level (None = format default)
        checksum_type: Algorithm for the record checksums
        location_href: Href to record (default: ``repodata/<file name>``)

    Returns:
        RepoMdRecord with size/checksum of the stored file and
        open_size/open_checksum of the decompressed content

    Raises:
        MetadataIOError: If the file cannot be written
    """
    try:
        with ExitStack() as stack:
            raw = stack.enter_context(open(path, "wb"))
            stored = _DigestWriter(raw, checksum_type)
            compressor = wrap_for_write(stored, compression, compression_level)
            stack.callback(compressor.close)
            opened = _DigestWriter(compressor, checksum_type)
            fmt.write(repository, XmlWriter(opened, indent_records=fmt.indent_records))
    except OSError as e:
        raise MetadataIOError(f"Failed to write {path}: {e}") from e

    record = RepoMdRecord(
        mdtype=fmt.mdtype,
        location_href=location_href or f"{REPODATA_DIR}/{path.name}",
        timestamp=int(path.stat().st_mtime),
        size=stored.size,
        checksum=stored.checksum(),
        open_size=opened.size,
        open_checksum=opened.checksum(),
    )
    logger.debug(f"Wrote {path} ({record.size} bytes, {record.open_size} uncompressed)")
    return record


def load_repository(repodata_dir: Path, config: Optional[MetadataConfig] = None) -> Repository:
    """Load a repository from its repodata/ directory.

    repomd.xml is read first; the primary, filelists, other and updateinfo
    documents it lists are then loaded in that order. Hrefs are resolved
    against the repository root (the parent of ``repodata_dir``).

    Args:
        repodata_dir: Path to the repodata/ directory
        config: Metadata options (defaults if None)

    Returns:
        Populated Repository

    Raises:
        MetadataError: If any document is missing or malformed
    """
    config = config or MetadataConfig()
    repodata_dir = Path(repodata_dir)
    repo_root = repodata_dir.parent

    repository = Repository()
    load_metadata(repository, RepomdXml(), repodata_dir / REPOMD_FILENAME)

    formats: list[MetadataFormat] = [
        PrimaryXml(),
        FilelistsXml(config.unmatched_packages),
        OtherXml(config.unmatched_packages),
        UpdateinfoXml(),
    ]
    for fmt in formats:
        record = repository.get_repomd_record(fmt.mdtype)
        if record is None:
            logger.debug(f"No {fmt.mdtype} record in {repodata_dir / REPOMD_FILENAME}")
            continue
        load_metadata(repository, fmt, repo_root / record.location_href)

    logger.info(
        f"Loaded {len(repository.packages)} packages and "
        f"{len(repository.updates)} updates from {repodata_dir}"
    )
    return repository


def write_repository(
    repository: Repository,
    repodata_dir: Path,
    config: Optional[MetadataConfig] = None,
) -> Path:
    """Write a repository's metadata into a repodata/ directory.

    Content documents are written first; repomd.xml is written last, once
    every file's final size and checksum is known. Records of other types
    already present in ``repository.repomd_records`` are listed unchanged.

    Args:
        repository: Repository to serialize (its repomd records are updated)
        repodata_dir: Output directory (created if missing)
        config: Metadata options (defaults if None)

    Returns:
        Path to the written repomd.xml
    """
    config = config or MetadataConfig()
    repodata_dir = Path(repodata_dir)
    repodata_dir.mkdir(parents=True, exist_ok=True)

    formats: list[MetadataFormat] = [PrimaryXml()]
    if METADATA_FILELISTS in config.repomd_types:
        formats.append(FilelistsXml())
    if METADATA_OTHER in config.repomd_types:
        formats.append(OtherXml())
    if METADATA_UPDATEINFO in config.repomd_types and repository.updates:
        formats.append(UpdateinfoXml())

    for fmt in formats:
        filename = add_compression_extension(fmt.filename, config.compression)
        record = write_metadata(
            repository,
            fmt,
            repodata_dir / filename,
            compression=config.compression,
            compression_level=config.compression_level,
            checksum_type=config.checksum_type,
            location_href=f"{repodata_dir.name}/{filename}",
        )
        repository.add_repomd_record(record)

    written = {fmt.mdtype for fmt in formats}
    for mdtype in (METADATA_FILELISTS, METADATA_OTHER, METADATA_UPDATEINFO):
        if mdtype not in written and repository.repomd_records.pop(mdtype, None) is not None:
            logger.debug(f"Dropped stale {mdtype} record")

    if repository.revision is None:
        repository.revision = str(int(time.time()))

    repomd_path = repodata_dir / REPOMD_FILENAME
    write_metadata(repository, RepomdXml(), repomd_path, compression="none", checksum_type=config.checksum_type)
    logger.info(f"Wrote {len(repository.packages)} packages to {repodata_dir}")
    return repomd_path
