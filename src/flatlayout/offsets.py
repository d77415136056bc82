"""Conversions between field widths and character ranges.

Ranges are 0-based and half-open, so ``line[start:end]`` yields the field.
"""

from __future__ import annotations

from collections.abc import Sequence

from flatlayout.errors import InvalidLayout, SchemaError


def compute_offsets(widths: Sequence[int]) -> list[tuple[int, int]]:
    """Lay widths end to end starting at column 0."""
    ranges: list[tuple[int, int]] = []
    pos = 0
    for idx, width in enumerate(widths):
        if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
            raise SchemaError(f"width #{idx} must be a positive integer, got {width!r}")
        ranges.append((pos, pos + width))
        pos += width
    return ranges


def compute_widths(ranges: Sequence[tuple[int, int]]) -> list[int]:
    """Recover widths from ranges; they must tile the line from column 0."""
    widths: list[int] = []
    expected_start = 0
    for idx, (start, end) in enumerate(ranges):
        if start != expected_start:
            raise InvalidLayout(
                f"range #{idx} starts at {start}, expected {expected_start} (gap or overlap)"
            )
        if end <= start:
            raise InvalidLayout(f"range #{idx} ({start}, {end}) is empty or reversed")
        widths.append(end - start)
        expected_start = end
    return widths
