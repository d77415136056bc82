from decimal import Decimal
from pathlib import Path

import orjson
import pyarrow.ipc as pa_ipc

from flatlayout.export import (
    dumps_payload,
    table_to_arrow,
    table_to_dataframe,
    tables_from_payload,
    write_arrow,
    write_jsonl,
)
from flatlayout.layout.descriptor import INDEFINITE, build_descriptor, build_section
from flatlayout.parser import parse
from flatlayout.table import Table

SITE_LINES = ["   3A new site", "a          1       8    8.20", "b                  9    9.13", ""]


def test_table_to_dataframe_types(site_descriptor):
    _header, body = parse(SITE_LINES, site_descriptor)
    df = table_to_dataframe(body, site_descriptor.sections[1])
    assert list(df.columns) == ["ID", "Var1", "Var2", "Var3"]
    assert str(df["Var1"].dtype) == "Int64"
    assert df["Var1"].isna().tolist() == [False, True]
    assert df["Var3"].tolist() == [8.2, 9.13]


def test_unnamed_columns_get_positional_names():
    section = build_section(widths=[2, 2], kinds=["integer", "character"], repeat=INDEFINITE)
    df = table_to_dataframe(Table([{0: 1, 1: "x"}]), section)
    assert list(df.columns) == ["V1", "V2"]


def test_arrow_outputs(tmp_path: Path, site_descriptor):
    tables = parse(SITE_LINES, site_descriptor)
    arrow_table = table_to_arrow(tables[1], site_descriptor.sections[1])
    assert arrow_table.num_rows == 2
    assert arrow_table.column("Var1").to_pylist() == [1, None]

    paths = write_arrow(tables, site_descriptor, tmp_path / "arrow")
    assert [p.name for p in paths] == ["section_0.arrow", "section_1.arrow"]
    with pa_ipc.open_file(paths[0]) as reader:
        header = reader.read_all()
    assert header.column("NAME").to_pylist() == ["A new site"]


def test_jsonl_output(tmp_path: Path, site_descriptor):
    tables = parse(SITE_LINES, site_descriptor)
    path = tmp_path / "out.jsonl"
    write_jsonl(tables, site_descriptor, path)
    records = [orjson.loads(line) for line in path.read_bytes().splitlines()]
    assert len(records) == 3
    assert records[0] == {"section": 0, "role": "header", "SITE": 3, "NAME": "A new site"}
    assert records[1]["Var3"] == "8.20"


def test_payload_roundtrip_restores_positional_keys():
    section = build_section(widths=[2, 4], kinds=["integer", "decimal(1)"], repeat=INDEFINITE)
    descriptor = build_descriptor([section])
    tables = [Table([{0: 1, 1: Decimal("2.5")}])]
    payload = orjson.loads(dumps_payload(tables))
    assert payload == {"tables": [[{"0": 1, "1": "2.5"}]]}
    restored = tables_from_payload(payload, descriptor)
    assert restored[0].rows == [{0: 1, 1: "2.5"}]
