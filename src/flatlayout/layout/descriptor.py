"""Sections and file descriptors.

A descriptor is an ordered list of sections (headers first, then bodies)
followed by a literal terminator line. Every structural invariant is checked
when the objects are built, so a descriptor that exists is a valid one.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Literal

from flatlayout.errors import SchemaError
from flatlayout.layout.fields import Constraint, Field, Kind, parse_constraint, parse_kind
from flatlayout.offsets import compute_offsets

Role = Literal["header", "body"]
INDEFINITE_NAMES = {"indefinite", "*", "inf"}


@dataclass(frozen=True)
class Repeat:
    count: int | None  # None repeats until the terminator or end of input

    @staticmethod
    def exactly(n: int) -> Repeat:
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise SchemaError(f"repeat count must be a positive integer, got {n!r}")
        return Repeat(n)

    @property
    def indefinite(self) -> bool:
        return self.count is None

    def __str__(self) -> str:
        return "indefinite" if self.count is None else f"exactly({self.count})"


INDEFINITE = Repeat(None)


def parse_repeat(spec: Repeat | int | str | None) -> Repeat:
    if isinstance(spec, Repeat):
        return spec
    if spec is None or (isinstance(spec, str) and spec.strip().lower() in INDEFINITE_NAMES):
        return INDEFINITE
    if isinstance(spec, str) and spec.strip().isdigit():
        return Repeat.exactly(int(spec))
    return Repeat.exactly(spec)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Section:
    fields: tuple[Field, ...]
    repeat: Repeat = Repeat(1)
    role: Role = "body"
    doc: str = ""
    delimiter: str = ""  # written between the fixed-width run and a free-form tail

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise SchemaError("a section needs at least one field")
        if self.role not in ("header", "body"):
            raise SchemaError(f"role must be 'header' or 'body', got {self.role!r}")
        if not isinstance(self.repeat, Repeat):
            object.__setattr__(self, "repeat", parse_repeat(self.repeat))
        free = [i for i, f in enumerate(self.fields) if f.free_form]
        if len(free) > 1:
            raise SchemaError(f"at most one free-form field allowed, found {len(free)}")
        if free and free[0] != len(self.fields) - 1:
            raise SchemaError(f"free-form field #{free[0]} must be the last field")
        names = [f.name for f in self.fields if f.name is not None]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise SchemaError(f"duplicate field names: {', '.join(dupes)}")
        if "\n" in self.delimiter or "\r" in self.delimiter:
            raise SchemaError("delimiter must not contain line breaks")

    @cached_property
    def fixed_fields(self) -> tuple[Field, ...]:
        return tuple(f for f in self.fields if not f.free_form)

    @property
    def free_field(self) -> Field | None:
        last = self.fields[-1]
        return last if last.free_form else None

    @cached_property
    def offsets(self) -> list[tuple[int, int]]:
        """Character ranges of the fixed-width fields."""
        return compute_offsets([f.width for f in self.fixed_fields])  # type: ignore[misc]

    @cached_property
    def fixed_width(self) -> int:
        return sum(f.width for f in self.fixed_fields)  # type: ignore[misc]

    def key(self, position: int) -> str | int:
        """Row key for the field at ``position``: its name, or the position if unnamed."""
        name = self.fields[position].name
        return name if name is not None else position

    @cached_property
    def keys(self) -> list[str | int]:
        return [self.key(i) for i in range(len(self.fields))]


@dataclass(frozen=True)
class FileDescriptor:
    sections: tuple[Section, ...]
    terminator: str = ""
    doc: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sections", tuple(self.sections))
        if not self.sections:
            raise SchemaError("a descriptor needs at least one section")
        if "\n" in self.terminator or "\r" in self.terminator:
            raise SchemaError("terminator must be a single line")
        seen_body = False
        for idx, section in enumerate(self.sections):
            if section.role == "body":
                seen_body = True
            elif seen_body:
                raise SchemaError("header section follows a body section", section_index=idx)
        if not seen_body:
            raise SchemaError("a descriptor needs at least one body section")
        indefinite = [i for i, s in enumerate(self.sections) if s.repeat.indefinite]
        if len(indefinite) > 1:
            raise SchemaError(
                "only one indefinite section allowed", section_index=indefinite[1]
            )
        if indefinite and indefinite[0] != len(self.sections) - 1:
            raise SchemaError(
                "indefinite section must be the last section", section_index=indefinite[0]
            )

    @property
    def headers(self) -> tuple[Section, ...]:
        return tuple(s for s in self.sections if s.role == "header")

    @property
    def bodies(self) -> tuple[Section, ...]:
        return tuple(s for s in self.sections if s.role == "body")


def _per_field(values: Sequence[Any] | None, count: int, label: str, default: Any) -> list[Any]:
    if values is None:
        return [default] * count
    values = list(values)
    if len(values) != count:
        raise SchemaError(f"{label} has {len(values)} entries for {count} widths")
    return values


def build_section(
    widths: Sequence[int | None],
    kinds: Sequence[Kind | str],
    justifications: Sequence[str | None] | None = None,
    repeat: Repeat | int | str | None = 1,
    names: Sequence[str | None] | None = None,
    docs: Sequence[str] | None = None,
    constraints: Sequence[Constraint | dict | None] | dict[str, Constraint | dict] | None = None,
    role: Role = "body",
    doc: str = "",
    delimiter: str = "",
) -> Section:
    """Build a Section from parallel per-field lists.

    ``None`` in ``widths`` marks the free-form field. ``constraints`` is either a
    parallel list or a mapping of field name to constraint spec.
    """
    count = len(widths)
    kind_list = _per_field(kinds, count, "kinds", None)
    just_list = _per_field(justifications, count, "justifications", None)
    name_list = _per_field(names, count, "names", None)
    doc_list = _per_field(docs, count, "docs", "")
    if isinstance(constraints, dict):
        unknown = set(constraints) - {n for n in name_list if n is not None}
        if unknown:
            raise SchemaError(f"constraints name unknown fields: {', '.join(sorted(unknown))}")
        constraint_list = [constraints.get(n) if n is not None else None for n in name_list]
    else:
        constraint_list = _per_field(constraints, count, "constraints", None)

    fields = tuple(
        Field(
            width=width,
            kind=parse_kind(kind),
            justification=just,  # type: ignore[arg-type]
            name=name,
            doc=fdoc or "",
            constraint=parse_constraint(constraint),
        )
        for width, kind, just, name, fdoc, constraint in zip(
            widths, kind_list, just_list, name_list, doc_list, constraint_list, strict=True
        )
    )
    return Section(
        fields=fields, repeat=parse_repeat(repeat), role=role, doc=doc, delimiter=delimiter
    )


def build_descriptor(
    sections: Sequence[Section | dict[str, Any]], terminator: str = "", doc: str = ""
) -> FileDescriptor:
    """Assemble a descriptor, tagging section-level failures with their index.

    Each entry is either a Section or a mapping of ``build_section`` keyword
    arguments.
    """
    built: list[Section] = []
    for idx, spec in enumerate(sections):
        try:
            built.append(spec if isinstance(spec, Section) else build_section(**spec))
        except SchemaError as exc:
            raise exc.at_section(idx) from exc
        except TypeError as exc:
            raise SchemaError(f"bad section arguments: {exc}", section_index=idx) from exc
    return FileDescriptor(sections=tuple(built), terminator=terminator, doc=doc)


def describe(descriptor: FileDescriptor, section_index: int) -> list[dict[str, object]]:
    """Summarise each field of one section for display."""
    section = descriptor.sections[section_index]
    ranges = iter(section.offsets)
    summary: list[dict[str, object]] = []
    for position, f in enumerate(section.fields):
        start, end = next(ranges) if not f.free_form else (section.fixed_width, None)
        summary.append(
            {
                "position": position,
                "name": f.name,
                "width": f.width,
                "start": start,
                "end": end,
                "kind": str(f.kind),
                "justification": f.justification,
                "constraint": str(f.constraint) if f.constraint is not None else None,
                "doc": f.doc,
            }
        )
    return summary
