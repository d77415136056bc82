"""Render tables back into raw lines."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from flatlayout.errors import (
    InvalidValue,
    Overflow,
    RowCountMismatch,
    SchemaError,
    TableMismatch,
)
from flatlayout.layout.descriptor import FileDescriptor, Section
from flatlayout.layout.fields import Field, Value, to_decimal
from flatlayout.table import Row, Table

logger = logging.getLogger(__name__)


def _render_integer(value: object) -> str:
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not an integer")
    if isinstance(value, int):
        return str(value)
    try:
        number = to_decimal(value)
    except SchemaError as exc:
        raise ValueError(exc.reason) from exc
    if number != number.to_integral_value():
        raise ValueError(f"{value!r} is not an integer")
    return str(int(number))


def _render_decimal(value: object, precision: int) -> str:
    try:
        number = to_decimal(value)
    except SchemaError as exc:
        raise ValueError(exc.reason) from exc
    if not number.is_finite():
        raise ValueError(f"{value!r} is not a finite number")
    # ROUND_HALF_UP rounds ties away from zero.
    try:
        with localcontext() as ctx:
            # Enough digits for the integer part plus every fraction digit.
            ctx.prec = max(ctx.prec, max(number.adjusted(), 0) + precision + 2)
            rounded = number.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"{value!r} has too many digits for precision {precision}") from exc
    if rounded.is_zero():
        rounded = rounded.copy_abs()
    return f"{rounded:f}"


def render_value(value: Value, field: Field) -> str:
    """Render a value to its unpadded text; None renders as an empty token."""
    if value is None:
        return ""
    if field.kind.base == "character":
        text = value if isinstance(value, str) else str(value)
        if "\n" in text or "\r" in text:
            raise ValueError(f"{text!r} contains a line break")
        return text
    if field.kind.base == "integer":
        return _render_integer(value)
    return _render_decimal(value, field.kind.precision)


def pad(token: str, field: Field) -> str:
    """Pad a token to the field width on the side opposite its justification."""
    width = field.width or 0
    return token.ljust(width) if field.justification == "left" else token.rjust(width)


def format_row(
    row: Row, section: Section, section_index: int | None = None, row_index: int | None = None
) -> str:
    parts: list[str] = []
    for position, field in enumerate(section.fields):
        key = section.key(position)
        try:
            token = render_value(row.get(key), field)
        except ValueError as exc:
            raise InvalidValue(
                f"field {key!r}: {exc}", section_index=section_index, row_index=row_index
            ) from exc
        if field.free_form:
            parts.append(section.delimiter + token)
            continue
        if len(token) > field.width:  # type: ignore[operator]
            raise Overflow(
                f"field {key!r}: {token!r} does not fit in {field.width} columns",
                section_index=section_index,
                row_index=row_index,
            )
        parts.append(pad(token, field))
    return "".join(parts)


def format_tables(tables: Sequence[Table], descriptor: FileDescriptor) -> list[str]:
    """Render tables into lines and append the terminator exactly once.

    No text is ever truncated: a value wider than its field raises Overflow.
    """
    if len(tables) != len(descriptor.sections):
        raise TableMismatch(f"got {len(tables)} tables for {len(descriptor.sections)} sections")
    lines: list[str] = []
    for section_index, (section, table) in enumerate(zip(descriptor.sections, tables, strict=True)):
        rows = table.rows if isinstance(table, Table) else list(table)
        count = section.repeat.count
        if count is not None and len(rows) != count:
            raise RowCountMismatch(
                f"section repeats exactly {count} times, table has {len(rows)} rows",
                section_index=section_index,
            )
        for row_index, row in enumerate(rows):
            lines.append(format_row(row, section, section_index, row_index))
        logger.debug("section %d: rendered %d rows", section_index, len(rows))
    lines.append(descriptor.terminator)
    return lines
