"""
Streaming XML reader and writer used by the metadata formats.

The reader is a thin pull layer over ``ElementTree.iterparse``: it yields
``(event, tag, element)`` for start and end events, reports tags with the
``rpm:`` prefix (or no prefix for the document's default namespace), and
drops finished records so only one record is held in memory at a time.

The writer emits the same event shapes straight to a binary stream.
"""

from __future__ import annotations

import logging
import lzma
import xml.etree.ElementTree as ET
import zlib
from typing import BinaryIO, Iterator, Optional
from xml.parsers.expat import errors as expat_errors
from xml.sax.saxutils import escape

import zstandard as zstd

from rpmrepo_metadata.errors import (
    IntFieldParseError,
    MetadataDecodeError,
    MetadataIOError,
    MetadataParseError,
    MissingAttributeError,
    MissingHeaderError,
)
from rpmrepo_metadata.mdtypes import NAMESPACE_PREFIXES, XML_NS_XML

logger = logging.getLogger(__name__)

_NO_ELEMENTS = expat_errors.codes[expat_errors.XML_ERROR_NO_ELEMENTS]
_ENCODING_ERRORS = {
    expat_errors.codes[expat_errors.XML_ERROR_UNKNOWN_ENCODING],
    expat_errors.codes[expat_errors.XML_ERROR_INCORRECT_ENCODING],
}

_STREAM_ERRORS = (OSError, EOFError, lzma.LZMAError, zlib.error, zstd.ZstdError)

_ATTR_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}
_TEXT_ENTITIES = {"\r": "&#13;"}


def qualified_name(tag: str) -> str:
    """Translate an ElementTree ``{uri}local`` tag to ``prefix:local``."""
    if not tag.startswith("{"):
        return tag
    uri, _, local = tag[1:].partition("}")
    try:
        prefix = NAMESPACE_PREFIXES[uri]
    except KeyError:
        return tag
    return f"{prefix}:{local}" if prefix else local


def _clark_name(name: str) -> str:
    if name.startswith("xml:"):
        return f"{{{XML_NS_XML}}}{name[4:]}"
    return name


class XmlReader:
    """Pull-based reader yielding ``(event, tag, element)`` tuples.

    Only ``start`` and ``end`` events are produced. Element text is complete
    on the ``end`` event; attributes are available on ``start``.
    """

    def __init__(self, source: BinaryIO):
        self._source = source
        self._root: Optional[ET.Element] = None
        self._tags: dict[str, str] = {}
        self._events = self._iterparse()
        # Tag of the record being read, used in truncation errors
        self.record: Optional[str] = None

    def _iterparse(self) -> Iterator[tuple[str, str, ET.Element]]:
        try:
            for event, elem in ET.iterparse(self._source, events=("start", "end")):
                if self._root is None:
                    self._root = elem
                tag = self._tags.get(elem.tag)
                if tag is None:
                    tag = self._tags[elem.tag] = qualified_name(elem.tag)
                yield event, tag, elem
        except ET.ParseError as e:
            if e.code in _ENCODING_ERRORS:
                raise MetadataDecodeError(f"Cannot decode metadata document: {e}") from e
            raise MetadataParseError(str(e), self.record) from e
        except _STREAM_ERRORS as e:
            raise MetadataIOError(f"Failed to read metadata stream: {e}") from e

    def __iter__(self) -> XmlReader:
        return self

    def __next__(self) -> tuple[str, str, ET.Element]:
        return next(self._events)

    def expect_root(self, tag: str) -> ET.Element:
        """Consume the root start event and check it is ``tag``.

        Raises:
            MissingHeaderError: If the document is empty or has another root
        """
        try:
            event, found, elem = next(self)
        except StopIteration:
            raise MissingHeaderError(tag) from None
        except MetadataParseError as e:
            cause = e.__cause__
            if isinstance(cause, ET.ParseError) and cause.code == _NO_ELEMENTS:
                raise MissingHeaderError(tag) from e
            raise
        if event != "start" or found != tag:
            raise MissingHeaderError(tag, found)
        return elem

    def skip(self, elem: ET.Element) -> None:
        """Consume events up to and including the end of ``elem``."""
        logger.debug(f"Skipping unknown element <{qualified_name(elem.tag)}>")
        for event, _, child in self:
            if event == "end" and child is elem:
                return
        self.truncated()

    def release(self, elem: ET.Element) -> None:
        """Drop a finished record and everything parsed before it."""
        elem.clear()
        if self._root is not None:
            self._root.clear()
        self.record = None

    def truncated(self) -> None:
        raise MetadataParseError("Unexpected end of document", self.record)


def get_text(elem: ET.Element) -> str:
    return elem.text or ""


def get_attribute(elem: ET.Element, name: str, required: bool = False) -> Optional[str]:
    """Read an attribute (``xml:base`` style names are accepted).

    Raises:
        MissingAttributeError: If ``required`` and the attribute is absent
    """
    value = elem.get(_clark_name(name))
    if value is None and required:
        raise MissingAttributeError(name, qualified_name(elem.tag))
    return value


def parse_int(value: Optional[str], field: str) -> Optional[int]:
    """Parse an optional integer field.

    Raises:
        IntFieldParseError: If the value is present but not an integer
    """
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise IntFieldParseError(field, value) from None


def get_int_attribute(elem: ET.Element, name: str, field: str | None = None) -> Optional[int]:
    return parse_int(elem.get(name), field or name)


class XmlWriter:
    """Streaming XML writer.

    Output uses two-space indentation and ``<tag/>`` for empty elements.
    With ``indent_records=False`` the root's children start at column 0, as
    in primary.xml, filelists.xml and other.xml.
    """

    _BUFFER_LIMIT = 64 * 1024

    def __init__(self, stream: BinaryIO, indent: str = "  ", indent_records: bool = True):
        self._stream = stream
        self._indent = indent
        self._offset = 0 if indent_records else 1
        self._stack: list[str] = []
        self._has_children: list[bool] = []
        self._pending_start = False
        self._buffer: list[str] = []
        self._buffered = 0

    def _write(self, data: str) -> None:
        self._buffer.append(data)
        self._buffered += len(data)
        if self._buffered >= self._BUFFER_LIMIT:
            self.flush()

    def flush(self) -> None:
        if self._buffer:
            self._stream.write("".join(self._buffer).encode("utf-8"))
            self._buffer.clear()
            self._buffered = 0

    def _newline(self) -> None:
        depth = len(self._stack)
        if depth == 0:
            return
        self._write("\n" + self._indent * max(depth - self._offset, 0))

    def _open_child(self) -> None:
        if self._pending_start:
            self._write(">")
            self._pending_start = False
        if self._has_children:
            self._has_children[-1] = True
        self._newline()

    @staticmethod
    def _format_attributes(attrs: Optional[dict[str, Optional[str]]]) -> str:
        if not attrs:
            return ""
        return "".join(
            f' {name}="{escape(str(value), _ATTR_ENTITIES)}"'
            for name, value in attrs.items()
            if value is not None
        )

    def start_document(self) -> None:
        self._write('<?xml version="1.0" encoding="UTF-8"?>\n')

    def start(self, tag: str, attrs: Optional[dict[str, Optional[str]]] = None) -> None:
        """Open a container element. Attributes whose value is None are omitted."""
        self._open_child()
        self._write(f"<{tag}{self._format_attributes(attrs)}")
        self._pending_start = True
        self._stack.append(tag)
        self._has_children.append(False)

    def end(self, tag: str) -> None:
        opened = self._stack.pop()
        if opened != tag:
            raise ValueError(f"Closing <{tag}> while <{opened}> is open")
        had_children = self._has_children.pop()
        if self._pending_start:
            self._write("/>")
            self._pending_start = False
            return
        if had_children:
            self._write("\n" + self._indent * max(len(self._stack) - self._offset, 0))
        self._write(f"</{tag}>")

    def element(
        self,
        tag: str,
        text: Optional[str] = None,
        attrs: Optional[dict[str, Optional[str]]] = None,
    ) -> None:
        """Write a leaf element with optional text."""
        self._open_child()
        attributes = self._format_attributes(attrs)
        if text:
            self._write(f"<{tag}{attributes}>{escape(text, _TEXT_ENTITIES)}</{tag}>")
        else:
            self._write(f"<{tag}{attributes}/>")

    def end_document(self) -> None:
        if self._stack:
            raise ValueError(f"Unclosed elements: {self._stack}")
        self._write("\n")
        self.flush()
