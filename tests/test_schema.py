from decimal import Decimal

import pytest

from flatlayout.errors import SchemaError
from flatlayout.layout.descriptor import (
    INDEFINITE,
    FileDescriptor,
    Repeat,
    Section,
    build_descriptor,
    build_section,
    describe,
)
from flatlayout.layout.fields import (
    CHARACTER,
    INTEGER,
    Field,
    Membership,
    Range,
    decimal,
    parse_kind,
)


def test_parse_kind_accepts_names_and_precision():
    assert parse_kind("character") == CHARACTER
    assert parse_kind("int") == INTEGER
    assert parse_kind("decimal(2)") == decimal(2)
    assert parse_kind("decimal") == decimal(0)
    with pytest.raises(SchemaError):
        parse_kind("integer(2)")
    with pytest.raises(SchemaError):
        parse_kind("float")


def test_field_defaults_justification_from_kind():
    assert Field(width=4, kind=CHARACTER).justification == "left"
    assert Field(width=4, kind=INTEGER).justification == "right"
    assert Field(width=4, kind="decimal(1)").justification == "right"
    assert Field(width=4, kind=INTEGER, justification="left").justification == "left"


def test_range_constraint_on_character_field_is_rejected():
    with pytest.raises(SchemaError):
        Field(width=4, kind=CHARACTER, constraint=Range(0, 1))
    with pytest.raises(SchemaError):
        Range(5, 1)


def test_numeric_membership_values_are_normalised():
    f = Field(width=4, kind=decimal(1), constraint={"membership": [1, 2.5]})
    assert isinstance(f.constraint, Membership)
    assert f.constraint.values == frozenset({Decimal("1"), Decimal("2.5")})


def test_section_allows_single_trailing_free_form_field():
    section = build_section(widths=[4, None], kinds=["integer", "character"])
    assert section.free_field is section.fields[1]
    assert section.fixed_width == 4
    assert section.keys == [0, 1]

    with pytest.raises(SchemaError):
        build_section(widths=[None, 4], kinds=["character", "integer"])
    with pytest.raises(SchemaError):
        Section(fields=(Field(width=None), Field(width=None)))


def test_section_rejects_mismatched_lists_and_duplicate_names():
    with pytest.raises(SchemaError, match="kinds has 1 entries for 2 widths"):
        build_section(widths=[4, 4], kinds=["integer"])
    with pytest.raises(SchemaError):
        build_section(widths=[4, 4], kinds=["integer", "integer"], names=["A", "A"])
    with pytest.raises(SchemaError):
        build_section(widths=[4], kinds=["integer"], constraints={"B": {"range": [0, 1]}})


def test_repeat_values():
    assert Repeat.exactly(3).count == 3
    assert INDEFINITE.indefinite
    with pytest.raises(SchemaError):
        Repeat.exactly(0)
    assert build_section(widths=[1], kinds=["character"], repeat="indefinite").repeat == INDEFINITE


def test_descriptor_enforces_section_order_and_single_indefinite():
    header = build_section(widths=[2], kinds=["integer"], role="header")
    body = build_section(widths=[2], kinds=["integer"])
    tail = build_section(widths=[2], kinds=["integer"], repeat=INDEFINITE)

    descriptor = FileDescriptor(sections=(header, body, tail))
    assert descriptor.terminator == ""
    assert len(descriptor.headers) == 1
    assert len(descriptor.bodies) == 2

    with pytest.raises(SchemaError) as excinfo:
        FileDescriptor(sections=(body, header))
    assert excinfo.value.section_index == 1

    with pytest.raises(SchemaError) as excinfo:
        FileDescriptor(sections=(tail, body))
    assert excinfo.value.section_index == 0

    with pytest.raises(SchemaError):
        FileDescriptor(sections=(body, tail, tail))
    with pytest.raises(SchemaError):
        FileDescriptor(sections=(header,))
    with pytest.raises(SchemaError):
        FileDescriptor(sections=())
    with pytest.raises(SchemaError):
        FileDescriptor(sections=(body,), terminator="END\n")


def test_build_descriptor_tags_section_index():
    with pytest.raises(SchemaError) as excinfo:
        build_descriptor(
            [
                {"widths": [2], "kinds": ["integer"]},
                {"widths": [2, 3], "kinds": ["integer"]},
            ]
        )
    assert excinfo.value.section_index == 1


def test_describe_lists_fields_with_offsets(site_descriptor):
    summary = describe(site_descriptor, 1)
    assert [entry["name"] for entry in summary] == ["ID", "Var1", "Var2", "Var3"]
    assert [(entry["start"], entry["end"]) for entry in summary] == [
        (0, 8),
        (8, 12),
        (12, 20),
        (20, 28),
    ]
    assert summary[1]["constraint"] == "membership{1, 2, 5}"
    assert summary[3]["kind"] == "decimal(2)"

    header = describe(site_descriptor, 0)
    assert header[1]["width"] is None
    assert header[1]["start"] == 4
    assert header[1]["justification"] == "left"
