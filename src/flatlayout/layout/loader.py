"""Load descriptors declared as YAML or JSON documents."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from flatlayout.errors import SchemaError
from flatlayout.layout.descriptor import FileDescriptor, Section, build_descriptor, build_section
from flatlayout.layout.fields import Field, Membership


def section_from_mapping(payload: dict[str, Any]) -> Section:
    if not isinstance(payload, dict):
        raise SchemaError(f"section must be a mapping, got {type(payload).__name__}")
    fields = payload.get("fields")
    if not isinstance(fields, list) or not fields:
        raise SchemaError("section needs a non-empty 'fields' list")
    for idx, entry in enumerate(fields):
        if not isinstance(entry, dict) or "width" not in entry or "kind" not in entry:
            raise SchemaError(f"field #{idx} needs 'width' and 'kind'")
    return build_section(
        widths=[f["width"] for f in fields],
        kinds=[f["kind"] for f in fields],
        justifications=[f.get("justification") for f in fields],
        repeat=payload.get("repeat", 1),
        names=[f.get("name") for f in fields],
        docs=[f.get("doc") or "" for f in fields],
        constraints=[f.get("constraint") for f in fields],
        role=payload.get("role", "body"),
        doc=payload.get("doc") or "",
        delimiter=payload.get("delimiter") or "",
    )


def descriptor_from_mapping(payload: dict[str, Any]) -> FileDescriptor:
    sections = payload.get("sections")
    if not isinstance(sections, list):
        raise SchemaError("descriptor needs a 'sections' list")
    built: list[Section] = []
    for idx, entry in enumerate(sections):
        try:
            built.append(section_from_mapping(entry))
        except SchemaError as exc:
            raise exc.at_section(idx) from exc
    terminator = payload.get("terminator")
    return build_descriptor(
        built,
        terminator="" if terminator is None else str(terminator),
        doc=payload.get("doc") or "",
    )


def load_descriptor(path: Path) -> FileDescriptor:
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text())
    else:
        payload = json.loads(path.read_text())
    if not isinstance(payload, dict):
        raise SchemaError(f"{path} does not hold a descriptor mapping")
    return descriptor_from_mapping(payload)


def _plain_number(value: Decimal) -> int | float:
    return int(value) if value == value.to_integral_value() else float(value)


def descriptor_to_mapping(descriptor: FileDescriptor) -> dict[str, Any]:
    """Inverse of ``descriptor_from_mapping``; output is YAML/JSON friendly."""

    def _constraint(f: Field) -> dict[str, Any] | None:
        c = f.constraint
        if c is None:
            return None
        if isinstance(c, Membership):
            if f.kind.numeric:
                values = [_plain_number(v) for v in sorted(c.values)]
            else:
                values = sorted(c.values, key=str)
            return {"membership": values}
        return {"range": [_plain_number(c.min), _plain_number(c.max)]}

    sections = []
    for section in descriptor.sections:
        fields = []
        for f in section.fields:
            entry: dict[str, Any] = {"name": f.name, "width": f.width, "kind": str(f.kind)}
            if f.justification != f.kind.default_justification:
                entry["justification"] = f.justification
            if f.doc:
                entry["doc"] = f.doc
            constraint = _constraint(f)
            if constraint is not None:
                entry["constraint"] = constraint
            fields.append(entry)
        item: dict[str, Any] = {
            "role": section.role,
            "repeat": "indefinite" if section.repeat.indefinite else section.repeat.count,
            "fields": fields,
        }
        if section.doc:
            item["doc"] = section.doc
        if section.delimiter:
            item["delimiter"] = section.delimiter
        sections.append(item)
    return {"doc": descriptor.doc, "terminator": descriptor.terminator, "sections": sections}


def sample_descriptor() -> dict[str, Any]:
    return {
        "doc": "Site header followed by per-sample measurements",
        "terminator": "",
        "sections": [
            {
                "role": "header",
                "repeat": 1,
                "doc": "Site identification",
                "fields": [
                    {"name": "SITE", "width": 4, "kind": "integer", "doc": "Site number"},
                    {"name": "NAME", "width": None, "kind": "character", "doc": "Site name"},
                ],
            },
            {
                "role": "body",
                "repeat": "indefinite",
                "doc": "One row per sample",
                "fields": [
                    {"name": "ID", "width": 8, "kind": "character", "doc": "Sample id"},
                    {
                        "name": "Var1",
                        "width": 4,
                        "kind": "integer",
                        "constraint": {"membership": [1, 2, 5]},
                    },
                    {"name": "Var2", "width": 8, "kind": "decimal(0)"},
                    {"name": "Var3", "width": 8, "kind": "decimal(2)"},
                ],
            },
        ],
    }
