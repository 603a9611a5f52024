"""Compression utilities for RPM metadata streams."""

from __future__ import annotations

import bz2
import gzip
import io
import logging
import lzma
from typing import BinaryIO, Literal, cast

import zstandard as zstd

from rpmrepo_metadata.errors import UnsupportedCompressionError

logger = logging.getLogger(__name__)

CompressionFormat = Literal["gzip", "xz", "bzip2", "zstandard", "none"]

COMPRESSION_FORMATS: tuple[CompressionFormat, ...] = ("gzip", "xz", "bzip2", "zstandard", "none")

_ALIASES: dict[str, CompressionFormat] = {
    "gz": "gzip",
    "bz2": "bzip2",
    "zst": "zstandard",
    "zstd": "zstandard",
}

_MAGIC: tuple[tuple[bytes, CompressionFormat], ...] = (
    (b"\x1f\x8b", "gzip"),
    (b"\xfd7zXZ\x00", "xz"),
    (b"BZh", "bzip2"),
    (b"\x28\xb5\x2f\xfd", "zstandard"),
)

_MAGIC_LENGTH = max(len(magic) for magic, _ in _MAGIC)

_DEFAULT_LEVELS: dict[CompressionFormat, int] = {
    "gzip": 6,
    "xz": 6,
    "bzip2": 9,
    "zstandard": 3,
}


def parse_compression(token: str) -> CompressionFormat:
    """Normalize a compression token from configuration.

    Args:
        token: Compression name (e.g., "gzip", "bz2", "xz", "zstd", "none")

    Returns:
        Canonical compression format

    Raises:
        UnsupportedCompressionError: If the token is unknown
    """
    token = token.strip().lower()
    if token in COMPRESSION_FORMATS:
        return cast(CompressionFormat, token)
    try:
        return _ALIASES[token]
    except KeyError:
        raise UnsupportedCompressionError(token) from None


def detect_compression(filename: str) -> CompressionFormat:
    """Detect compression format from filename extension.

    Streams are decoded by their magic bytes; the extension is only checked
    against them when loading a file.

    Args:
        filename: Filename to check (e.g., "primary.xml.gz", "primary.xml.zst")

    Returns:
        Compression format ("none" if no known extension)
    """
    if filename.endswith(".gz"):
        return "gzip"
    elif filename.endswith(".xz"):
        return "xz"
    elif filename.endswith(".zst"):
        return "zstandard"
    elif filename.endswith(".bz2"):
        return "bzip2"
    else:
        return "none"


def sniff_compression(head: bytes) -> CompressionFormat:
    """Identify the compression of a stream from its first bytes.

    Args:
        head: Leading bytes of the stream

    Returns:
        Detected compression format; "none" for plain XML

    Raises:
        UnsupportedCompressionError: If the bytes are neither a known
            compressed format nor the start of an XML document
    """
    for magic, compression in _MAGIC:
        if head.startswith(magic):
            return compression

    stripped = head.lstrip(b"\xef\xbb\xbf \t\r\n")
    if not stripped or stripped.startswith(b"<"):
        return "none"
    raise UnsupportedCompressionError()


def sniff_and_wrap(stream: BinaryIO) -> tuple[BinaryIO, CompressionFormat]:
    """Wrap a raw byte stream in the matching decompressing reader.

    The caller keeps ownership of ``stream``; closing the returned reader
    does not close it.

    Args:
        stream: Readable binary stream positioned at the start of the file

    Returns:
        Tuple of (decompressed stream, detected compression format)

    Raises:
        UnsupportedCompressionError: On unrecognized magic bytes
    """
    if hasattr(stream, "peek"):
        head = stream.peek(_MAGIC_LENGTH)[:_MAGIC_LENGTH]  # type: ignore[attr-defined]
    elif stream.seekable():
        position = stream.tell()
        head = stream.read(_MAGIC_LENGTH)
        stream.seek(position)
    else:
        stream = cast(BinaryIO, io.BufferedReader(cast(io.RawIOBase, stream)))
        head = stream.peek(_MAGIC_LENGTH)[:_MAGIC_LENGTH]  # type: ignore[attr-defined]
    compression = sniff_compression(head)
    logger.debug(f"Detected {compression} compression")

    if compression == "gzip":
        return cast(BinaryIO, gzip.GzipFile(fileobj=stream, mode="rb")), compression
    elif compression == "xz":
        return cast(BinaryIO, lzma.LZMAFile(stream, mode="rb")), compression
    elif compression == "bzip2":
        return cast(BinaryIO, bz2.BZ2File(stream, mode="rb")), compression
    elif compression == "zstandard":
        dctx = zstd.ZstdDecompressor()
        reader = dctx.stream_reader(stream, closefd=False, read_across_frames=True)
        return cast(BinaryIO, reader), compression
    return stream, compression


def wrap_for_write(
    stream: BinaryIO,
    compression: CompressionFormat | str,
    compression_level: int | None = None,
) -> BinaryIO:
    """Wrap an outgoing byte stream in the matching compressor.

    The returned writer must be closed to flush the compressed trailer;
    closing it leaves ``stream`` open.

    Args:
        stream: Writable binary stream
        compression: Compression format or alias
        compression_level: Compression level (format-dependent, None = default)

    Returns:
        Writable stream that compresses into ``stream``

    Raises:
        UnsupportedCompressionError: If the compression format is unknown
    """
    compression = parse_compression(compression)
    if compression == "none":
        return _Uncompressed(stream)

    level = compression_level if compression_level is not None else _DEFAULT_LEVELS[compression]
    if compression == "gzip":
        # mtime=0 keeps output reproducible
        writer = gzip.GzipFile(
            filename="", mode="wb", compresslevel=level, fileobj=stream, mtime=0
        )
        return cast(BinaryIO, writer)
    elif compression == "xz":
        return cast(BinaryIO, lzma.LZMAFile(stream, mode="wb", preset=level))
    elif compression == "bzip2":
        return cast(BinaryIO, bz2.BZ2File(stream, mode="wb", compresslevel=level))
    cctx = zstd.ZstdCompressor(level=level)
    return cast(BinaryIO, cctx.stream_writer(stream, closefd=False))


class _Uncompressed(io.RawIOBase):
    """Pass-through writer whose close() does not close the target."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # type: ignore[override]
        self._stream.write(data)
        return len(data)

    def flush(self) -> None:
        if not self.closed:
            self._stream.flush()


def get_extension(compression: CompressionFormat | str) -> str:
    """Get file extension for compression format.

    Args:
        compression: Compression format

    Returns:
        File extension (e.g., ".gz", ".zst", "")
    """
    compression = parse_compression(compression)
    if compression == "gzip":
        return ".gz"
    elif compression == "xz":
        return ".xz"
    elif compression == "zstandard":
        return ".zst"
    elif compression == "bzip2":
        return ".bz2"
    return ""


def add_compression_extension(filename: str, compression: CompressionFormat | str) -> str:
    """Add compression extension to filename if needed.

    Args:
        filename: Base filename (e.g., "primary.xml")
        compression: Compression format

    Returns:
        Filename with compression extension (e.g., "primary.xml.gz")
    """
    ext = get_extension(compression)
    if ext:
        return f"{filename}{ext}"
    return filename
