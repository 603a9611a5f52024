"""
Epoch/version/release ordering.

Version and release strings are split into maximal runs of ASCII digits and
ASCII letters; every other character is a separator and is skipped. The two
segment sequences are then compared pairwise:

- numeric vs numeric: leading zeros stripped, longer is greater, then by digits
- alpha vs alpha: ordinal, case-sensitive
- numeric vs alpha: numeric is greater
- one side exhausted: a remaining numeric segment wins, a remaining alphabetic
  segment loses (trailing letters mark a pre-release)
"""

from __future__ import annotations

import re
from typing import Iterator

_SEGMENT_RE = re.compile(rb"[0-9]+|[A-Za-z]+")


def iter_segments(value: str) -> Iterator[bytes]:
    """Yield the digit and letter runs of ``value``, skipping separators."""
    for match in _SEGMENT_RE.finditer(value.encode("utf-8")):
        yield match.group()


def _compare_segments(first: bytes, second: bytes) -> int:
    first_numeric = first[:1].isdigit()
    second_numeric = second[:1].isdigit()

    if first_numeric and second_numeric:
        first = first.lstrip(b"0")
        second = second.lstrip(b"0")
        if len(first) != len(second):
            return 1 if len(first) > len(second) else -1
    elif first_numeric:
        return 1
    elif second_numeric:
        return -1

    if first == second:
        return 0
    return 1 if first > second else -1


def compare_version_strings(first: str, second: str) -> int:
    """Compare a single version or release component.

    Args:
        first: Version (or release) string
        second: Version (or release) string

    Returns:
        1 if ``first`` is newer, -1 if older, 0 if they compare equal
    """
    if first == second:
        return 0

    first_segments = list(iter_segments(first))
    second_segments = list(iter_segments(second))

    for first_segment, second_segment in zip(first_segments, second_segments):
        result = _compare_segments(first_segment, second_segment)
        if result != 0:
            return result

    if len(first_segments) == len(second_segments):
        return 0

    # Exactly one side is exhausted
    if len(first_segments) > len(second_segments):
        remaining = first_segments[len(second_segments)]
        return 1 if remaining[:1].isdigit() else -1

    remaining = second_segments[len(first_segments)]
    return -1 if remaining[:1].isdigit() else 1


def compare_evr(
    first: tuple[str, str, str],
    second: tuple[str, str, str],
) -> int:
    """Compare two ``(epoch, version, release)`` tuples.

    An empty epoch compares as ``"0"``. The epoch dominates, then the
    version, then the release.

    Returns:
        1 if ``first`` is newer, -1 if older, 0 if they compare equal
    """
    first_epoch, first_version, first_release = first
    second_epoch, second_version, second_release = second

    result = compare_version_strings(first_epoch or "0", second_epoch or "0")
    if result != 0:
        return result

    result = compare_version_strings(first_version, second_version)
    if result != 0:
        return result

    return compare_version_strings(first_release, second_release)


def canonical_segments(value: str) -> tuple[tuple[bool, bytes], ...]:
    """Return a hashable form that is equal exactly when two strings compare equal."""
    return tuple(
        (True, segment.lstrip(b"0")) if segment[:1].isdigit() else (False, segment)
        for segment in iter_segments(value)
    )


def split_evr(value: str) -> tuple[str, str, str]:
    """Split ``[epoch:]version[-release]`` into its three components.

    Missing components default to empty strings.

    >>> split_evr("1:11.13.2.0-1")
    ('1', '11.13.2.0', '1')
    >>> split_evr("11.13.2.0")
    ('', '11.13.2.0', '')
    """
    value = value.strip()
    if ":" in value:
        epoch, _, version_release = value.partition(":")
    else:
        epoch, version_release = "", value

    if "-" in version_release:
        version, _, release = version_release.rpartition("-")
    else:
        version, release = version_release, ""
    return epoch, version, release
