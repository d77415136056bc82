"""Caller-owned tabular data for one section."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from flatlayout.layout.fields import Value

Row = dict[str | int, Value]


@dataclass
class Table:
    """Rows of one section, keyed by field name (or position for unnamed fields).

    Tables hold no reference to a descriptor; validity is re-checked by the
    formatter and the checker on every call.
    """

    rows: list[Row] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> Row:
        return self.rows[index]

    def append(self, row: Row) -> None:
        self.rows.append(row)

    def column(self, key: str | int) -> list[Value]:
        return [row.get(key) for row in self.rows]
