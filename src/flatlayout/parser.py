"""Turn raw lines into one Table per section."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from decimal import Decimal

from flatlayout.errors import TruncatedSection, TypeMismatch
from flatlayout.layout.descriptor import FileDescriptor, Section
from flatlayout.layout.fields import Field, Value
from flatlayout.table import Row, Table

logger = logging.getLogger(__name__)

INT_RE = re.compile(r"^[+-]?[0-9]+$")
DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


def _strip_padding(token: str, field: Field) -> str:
    if field.kind.numeric:
        return token.strip(" ")
    return token.rstrip(" ") if field.justification == "left" else token.lstrip(" ")


def cast_token(token: str, field: Field) -> Value:
    """Cast a trimmed token to its field's kind; blank numerics become None."""
    if field.kind.base == "character":
        return token
    text = token.strip()
    if not text:
        return None
    if field.kind.base == "integer":
        if not INT_RE.match(text):
            raise ValueError(f"{token!r} is not an integer")
        return int(text)
    if not DECIMAL_RE.match(text):
        raise ValueError(f"{token!r} is not a decimal number")
    return Decimal(text)


def parse_line(line: str, section: Section) -> Row:
    """Split one line into a row according to the section's fields."""
    row: Row = {}
    ranges = iter(section.offsets)
    for position, field in enumerate(section.fields):
        if field.free_form:
            token = line[section.fixed_width :]
            if section.delimiter and token.startswith(section.delimiter):
                token = token[len(section.delimiter) :]
            if field.kind.numeric:
                token = token.strip()
        else:
            start, end = next(ranges)
            token = _strip_padding(line[start:end], field)
        row[section.key(position)] = cast_token(token, field)
    return row


def parse(lines: Iterable[str], descriptor: FileDescriptor) -> list[Table]:
    """Parse lines into tables, one per section in descriptor order.

    Fixed-count sections take exactly ``n`` lines and never look at the
    terminator. The indefinite section stops at the first line equal to the
    terminator (exact comparison) or at end of input. Anything after that is
    ignored. A single trailing newline on each line is dropped.
    """
    buffer = [line.removesuffix("\n") for line in lines]
    cursor = 0
    tables: list[Table] = []

    for section_index, section in enumerate(descriptor.sections):
        table = Table()
        if section.repeat.indefinite:
            terminated = False
            while cursor < len(buffer):
                line = buffer[cursor]
                cursor += 1
                if line == descriptor.terminator:
                    terminated = True
                    break
                table.append(_parse_row(line, section, section_index, cursor - 1))
            logger.debug(
                "section %d: %d rows, terminator %s",
                section_index,
                len(table),
                "seen" if terminated else "not found before end of input",
            )
        else:
            count = section.repeat.count or 0
            if cursor + count > len(buffer):
                raise TruncatedSection(
                    f"expected {count} lines, only {len(buffer) - cursor} remain",
                    section_index=section_index,
                    line_offset=len(buffer),
                )
            for line_offset in range(cursor, cursor + count):
                table.append(_parse_row(buffer[line_offset], section, section_index, line_offset))
            cursor += count
            logger.debug("section %d: %d fixed rows", section_index, count)
        tables.append(table)

    if cursor < len(buffer):
        logger.debug("ignoring %d trailing lines", len(buffer) - cursor)
    return tables


def _parse_row(line: str, section: Section, section_index: int, line_offset: int) -> Row:
    try:
        return parse_line(line, section)
    except ValueError as exc:
        raise TypeMismatch(str(exc), section_index=section_index, line_offset=line_offset) from exc
