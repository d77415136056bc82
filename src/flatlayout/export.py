"""Hand parsed tables to analytics tools: pandas, Arrow IPC, JSONL, JSON payloads."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any

import orjson
import pandas as pd
import pyarrow as pa

from flatlayout.layout.descriptor import FileDescriptor, Section
from flatlayout.layout.fields import Value
from flatlayout.table import Table

ARROW_TYPES = {"character": pa.string(), "integer": pa.int64(), "decimal": pa.float64()}


def _default(obj: object) -> object:
    # orjson has no Decimal support; strings keep every digit.
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _column_name(key: str | int) -> str:
    return key if isinstance(key, str) else f"V{key + 1}"


def _plain(value: Value) -> Any:
    return float(value) if isinstance(value, Decimal) else value


def table_to_dataframe(table: Table, section: Section) -> pd.DataFrame:
    """One column per field, in field order; decimals become floats."""
    columns: dict[str, pd.Series] = {}
    for position, field in enumerate(section.fields):
        key = section.key(position)
        values = [_plain(v) for v in table.column(key)]
        if field.kind.base == "integer":
            series = pd.Series(values, dtype="Int64")
        elif field.kind.base == "decimal":
            series = pd.Series(values, dtype="float64")
        else:
            series = pd.Series(values, dtype="object")
        columns[_column_name(key)] = series
    return pd.DataFrame(columns)


def table_to_arrow(table: Table, section: Section) -> pa.Table:
    arrays = {}
    for position, field in enumerate(section.fields):
        key = section.key(position)
        arrays[_column_name(key)] = pa.array(
            [_plain(v) for v in table.column(key)], type=ARROW_TYPES[field.kind.base]
        )
    return pa.table(arrays)


def write_arrow(
    tables: Sequence[Table], descriptor: FileDescriptor, directory: Path, stem: str = "section"
) -> list[Path]:
    """Write one Arrow IPC file per section; returns the paths written."""
    directory.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for idx, (section, table) in enumerate(zip(descriptor.sections, tables, strict=True)):
        path = directory / f"{stem}_{idx}.arrow"
        arrow_table = table_to_arrow(table, section)
        with pa.OSFile(str(path), "wb") as sink:
            with pa.ipc.new_file(sink, arrow_table.schema) as writer:
                writer.write_table(arrow_table)
        written.append(path)
    return written


def _json_row(row: dict) -> dict[str, Any]:
    return {str(k): v for k, v in row.items()}


def write_jsonl(tables: Sequence[Table], descriptor: FileDescriptor, path: Path) -> None:
    """One JSON object per row, tagged with its section index and role."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as f:
        for idx, (section, table) in enumerate(zip(descriptor.sections, tables, strict=True)):
            for row in table:
                record = {"section": idx, "role": section.role, **_json_row(row)}
                f.write(orjson.dumps(record, default=_default) + b"\n")


def tables_to_payload(tables: Sequence[Table]) -> dict[str, Any]:
    return {"tables": [[_json_row(row) for row in table] for table in tables]}


def tables_from_payload(payload: dict[str, Any], descriptor: FileDescriptor) -> list[Table]:
    """Rebuild tables from ``tables_to_payload`` output.

    JSON object keys are strings, so keys of unnamed fields are mapped back to
    their integer positions.
    """
    raw_tables = payload.get("tables")
    if not isinstance(raw_tables, list):
        raise ValueError("payload needs a 'tables' list")
    tables: list[Table] = []
    for idx, raw in enumerate(raw_tables):
        section = descriptor.sections[idx] if idx < len(descriptor.sections) else None
        unnamed = (
            {str(k): k for k in section.keys if isinstance(k, int)} if section is not None else {}
        )
        tables.append(Table(rows=[{unnamed.get(k, k): v for k, v in row.items()} for row in raw]))
    return tables


def dumps_payload(tables: Sequence[Table], indent: bool = True) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(tables_to_payload(tables), option=option, default=_default)
