"""Exception taxonomy for layout construction, parsing, and formatting.

Constraint violations are deliberately absent: they are reported as data by
``flatlayout.checker.check`` and never raised.
"""

from __future__ import annotations


class FlatLayoutError(Exception):
    """Base class for every error raised by the engine."""


class SchemaError(FlatLayoutError, ValueError):
    """A descriptor, section, or field violates a structural invariant."""

    def __init__(self, reason: str, section_index: int | None = None) -> None:
        self.reason = reason
        self.section_index = section_index
        where = f"section {section_index}: " if section_index is not None else ""
        super().__init__(f"{where}{reason}")

    def at_section(self, section_index: int) -> SchemaError:
        """Return a copy of this error tagged with the offending section index."""
        return type(self)(self.reason, section_index=section_index)


class InvalidLayout(SchemaError):
    """Character ranges are not contiguous, ascending, and non-overlapping."""


class ParseError(FlatLayoutError):
    """Raised while consuming a specific input line."""

    def __init__(self, message: str, section_index: int, line_offset: int) -> None:
        self.section_index = section_index
        self.line_offset = line_offset
        super().__init__(f"section {section_index}, line {line_offset}: {message}")


class TruncatedSection(ParseError):
    """Input ended before a fixed-count section received all of its lines."""


class TypeMismatch(ParseError):
    """A token could not be cast to its field's kind."""


class FormatError(FlatLayoutError):
    """Raised while rendering tables back into lines."""

    def __init__(
        self, message: str, section_index: int | None = None, row_index: int | None = None
    ) -> None:
        self.section_index = section_index
        self.row_index = row_index
        parts = []
        if section_index is not None:
            parts.append(f"section {section_index}")
        if row_index is not None:
            parts.append(f"row {row_index}")
        prefix = ", ".join(parts)
        super().__init__(f"{prefix}: {message}" if prefix else message)


class Overflow(FormatError):
    """A rendered token is wider than its field."""


class TableMismatch(FormatError):
    """The number of tables does not match the number of sections."""


class RowCountMismatch(FormatError):
    """A fixed-count section received a table with the wrong number of rows."""


class InvalidValue(FormatError):
    """A value cannot be rendered as its field's kind."""
