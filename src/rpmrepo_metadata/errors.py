"""
Exceptions raised while reading or writing repository metadata.

Every error is reported to the caller; nothing is retried or swallowed here.
Records appended to a Repository before a failure are left in place.
"""

from __future__ import annotations


class MetadataError(Exception):
    """Base class for all metadata codec errors."""


class MetadataParseError(MetadataError):
    """Malformed or truncated XML document."""

    def __init__(self, message: str, record: str | None = None):
        self.record = record
        if record:
            message = f"{message} (while reading <{record}>)"
        super().__init__(message)


class MetadataDecodeError(MetadataError):
    """Content cannot be decoded as text.

    Raised for byte-string fields that are not valid UTF-8 and for documents
    whose declared encoding is unknown or does not match their bytes. Invalid
    byte sequences inside a UTF-8 document are reported by expat as
    malformed tokens and surface as MetadataParseError.
    """


class MetadataIOError(MetadataError):
    """The underlying (possibly compressed) stream failed."""


class IntFieldParseError(MetadataError, ValueError):
    """A numeric attribute or element held non-numeric text."""

    def __init__(self, field: str, value: str | None):
        self.field = field
        self.value = value
        super().__init__(f"Invalid integer for {field}: {value!r}")


class UnsupportedCompressionError(MetadataError):
    """Unrecognized compression magic bytes or compression token."""

    def __init__(self, compression: str | None = None):
        self.compression = compression
        if compression is None:
            super().__init__("Unsupported compression format (unrecognized magic bytes)")
        else:
            super().__init__(f"Compression type {compression} is not supported")


class UnsupportedChecksumTypeError(MetadataError):
    """Unrecognized checksum algorithm token."""

    def __init__(self, checksum_type: str):
        self.checksum_type = checksum_type
        super().__init__(f"Checksum type {checksum_type} is not supported")


class MissingFieldError(MetadataError):
    """A load-bearing field was absent from a record."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing metadata field: {field}")


class MissingAttributeError(MetadataError):
    """A structural element lacked a required attribute."""

    def __init__(self, attribute: str, element: str | None = None):
        self.attribute = attribute
        self.element = element
        where = f" on <{element}>" if element else ""
        super().__init__(f"Missing metadata attribute: {attribute}{where}")


class MissingHeaderError(MetadataError):
    """The document did not start with the expected root element."""

    def __init__(self, expected: str, found: str | None = None):
        self.expected = expected
        self.found = found
        found_msg = f", found <{found}>" if found else ""
        super().__init__(f"Missing metadata header: expected <{expected}>{found_msg}")


class UnknownPackageError(MetadataError):
    """A filelists/other record names a package the repository does not hold."""

    def __init__(self, nevra: str):
        self.nevra = nevra
        super().__init__(f"No package matching {nevra} in repository")
