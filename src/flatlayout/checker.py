"""Advisory value-constraint checks.

Violations are data: ``check`` never raises for bad values and never blocks
formatting. Acting on the report is up to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from flatlayout.errors import SchemaError
from flatlayout.layout.descriptor import FileDescriptor
from flatlayout.layout.fields import Field, Value, to_decimal
from flatlayout.table import Table

logger = logging.getLogger(__name__)


@dataclass
class FieldCheck:
    section_index: int
    row_index: int
    field: str | int
    constraint: str
    value: Value
    passed: bool


@dataclass
class CheckReport:
    checks: list[FieldCheck] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failures(self) -> list[FieldCheck]:
        return [c for c in self.checks if not c.passed]

    def for_field(self, section_index: int, key: str | int) -> list[FieldCheck]:
        return [c for c in self.checks if c.section_index == section_index and c.field == key]


def evaluate(value: object, f: Field) -> bool:
    """Apply one field's constraint to one value."""
    if f.constraint is None:
        return True
    if f.kind.numeric and value is not None:
        try:
            value = to_decimal(value)
        except SchemaError:
            return False
        if not value.is_finite():
            return False
    return f.constraint.accepts(value)  # type: ignore[arg-type]


def check(tables: Sequence[Table], descriptor: FileDescriptor) -> CheckReport:
    """Check every constrained field of every row; one entry per field per row."""
    report = CheckReport()
    if len(tables) != len(descriptor.sections):
        report.warnings.append(
            f"table_count_mismatch: {len(tables)} tables for {len(descriptor.sections)} sections"
        )
    for section_index, (section, table) in enumerate(zip(descriptor.sections, tables)):
        constrained = [(pos, f) for pos, f in enumerate(section.fields) if f.constraint is not None]
        if not constrained:
            continue
        rows = table.rows if isinstance(table, Table) else list(table)
        for row_index, row in enumerate(rows):
            for position, f in constrained:
                key = section.key(position)
                value = row.get(key)
                report.checks.append(
                    FieldCheck(
                        section_index=section_index,
                        row_index=row_index,
                        field=key,
                        constraint=str(f.constraint),
                        value=value,
                        passed=evaluate(value, f),
                    )
                )
    logger.debug("checked %d values, %d failed", len(report.checks), len(report.failures))
    return report
