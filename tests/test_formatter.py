from decimal import Decimal

import pytest

from flatlayout.errors import InvalidValue, Overflow, RowCountMismatch, TableMismatch
from flatlayout.formatter import format_tables, render_value
from flatlayout.layout.descriptor import INDEFINITE, build_descriptor, build_section
from flatlayout.layout.fields import Field, decimal
from flatlayout.parser import parse
from flatlayout.table import Table


def test_format_site_file(site_descriptor, site_tables):
    lines = format_tables(site_tables, site_descriptor)
    assert lines == [
        "   3A new site",
        "a          1       8    8.20",
        "b          1       9    9.13",
        "",
    ]


def test_decimal_rounding_is_half_away_from_zero():
    f = Field(width=8, kind=decimal(1))
    assert render_value(Decimal("0.25"), f) == "0.3"
    assert render_value(Decimal("-0.25"), f) == "-0.3"
    assert render_value(2.45, f) == "2.5"
    assert render_value(Decimal("-0.04"), f) == "0.0"
    assert render_value(3, Field(width=8, kind=decimal(2))) == "3.00"
    assert render_value(Decimal("1E+2"), Field(width=8, kind=decimal(0))) == "100"


def test_integer_rendering():
    f = Field(width=4, kind="integer")
    assert render_value(7, f) == "7"
    assert render_value(Decimal("7.0"), f) == "7"
    assert render_value(None, f) == ""
    with pytest.raises(ValueError):
        render_value(7.5, f)
    with pytest.raises(ValueError):
        render_value(True, f)


def test_character_overflow_is_never_truncated(site_descriptor):
    tables = [Table([{"SITE": 3, "NAME": "x"}]), Table([{"ID": "much-too-long"}])]
    with pytest.raises(Overflow) as excinfo:
        format_tables(tables, site_descriptor)
    assert excinfo.value.section_index == 1
    assert excinfo.value.row_index == 0


def test_numeric_overflow(site_descriptor):
    tables = [Table([{"SITE": 12345, "NAME": "x"}]), Table()]
    with pytest.raises(Overflow):
        format_tables(tables, site_descriptor)


def test_missing_values_render_blank(site_descriptor):
    tables = [Table([{"SITE": None}]), Table([{"ID": "c"}])]
    assert format_tables(tables, site_descriptor) == ["    ", "c" + " " * 27, ""]


def test_table_shape_is_checked(site_descriptor, site_tables):
    with pytest.raises(TableMismatch):
        format_tables(site_tables[:1], site_descriptor)
    with pytest.raises(RowCountMismatch):
        format_tables([Table(), site_tables[1]], site_descriptor)


def test_bad_values_raise_invalid_value(site_descriptor):
    tables = [Table([{"SITE": "three", "NAME": "x"}]), Table()]
    with pytest.raises(InvalidValue):
        format_tables(tables, site_descriptor)
    tables = [Table([{"SITE": 3, "NAME": "two\nlines"}]), Table()]
    with pytest.raises(InvalidValue):
        format_tables(tables, site_descriptor)


def test_terminator_appended_once_and_delimiter_written():
    section = build_section(
        widths=[3, None],
        kinds=["character", "character"],
        justifications=["right", None],
        names=["K", "V"],
        repeat=INDEFINITE,
        delimiter="=",
    )
    descriptor = build_descriptor([section], terminator="END")
    lines = format_tables([Table([{"K": "a", "V": "1"}, {"K": "bb", "V": None}])], descriptor)
    assert lines == ["  a=1", " bb=", "END"]


def test_wide_decimal_round_trips_beyond_default_context_precision():
    section = build_section(widths=[40], kinds=["decimal(2)"], names=["BIG"], repeat=INDEFINITE)
    descriptor = build_descriptor([section])
    line = "1234567890123456789012345678.90".rjust(40)
    tables = parse([line], descriptor)
    assert tables[0][0]["BIG"] == Decimal("1234567890123456789012345678.90")
    assert format_tables(tables, descriptor) == [line, ""]


def test_high_precision_decimal_is_rendered_in_full():
    f = Field(width=40, kind=decimal(30))
    assert render_value(Decimal("0.5"), f) == "0.5" + "0" * 29
    assert render_value(Decimal("-0.5"), f) == "-0.5" + "0" * 29
