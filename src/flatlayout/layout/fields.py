"""Field-level building blocks: kinds, justification, and value constraints."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Literal

from flatlayout.errors import SchemaError

Value = str | int | Decimal | None
Justification = Literal["left", "right"]

KIND_RE = re.compile(r"^\s*(character|integer|decimal)\s*(?:\(\s*(\d+)\s*\))?\s*$", re.IGNORECASE)
KIND_ALIASES = {"char": "character", "str": "character", "int": "integer", "num": "decimal"}


@dataclass(frozen=True)
class Kind:
    base: Literal["character", "integer", "decimal"]
    precision: int = 0  # fraction digits written for decimals; ignored otherwise

    def __post_init__(self) -> None:
        if self.base not in ("character", "integer", "decimal"):
            raise SchemaError(f"unrecognised kind {self.base!r}")

    @property
    def numeric(self) -> bool:
        return self.base != "character"

    @property
    def default_justification(self) -> Justification:
        return "left" if self.base == "character" else "right"

    def __str__(self) -> str:
        if self.base == "decimal":
            return f"decimal({self.precision})"
        return self.base


CHARACTER = Kind("character")
INTEGER = Kind("integer")


def decimal(precision: int = 0) -> Kind:
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        raise SchemaError(f"decimal precision must be a non-negative integer, got {precision!r}")
    return Kind("decimal", precision)


def parse_kind(spec: Kind | str) -> Kind:
    """Accept a Kind or a name such as ``"integer"`` or ``"decimal(2)"``."""
    if isinstance(spec, Kind):
        return spec
    if not isinstance(spec, str):
        raise SchemaError(f"unrecognised kind {spec!r}")
    text = KIND_ALIASES.get(spec.strip().lower(), spec)
    match = KIND_RE.match(text)
    if not match:
        raise SchemaError(f"unrecognised kind {spec!r}")
    base = match.group(1).lower()
    digits = match.group(2)
    if base == "decimal":
        return decimal(int(digits) if digits else 0)
    if digits:
        raise SchemaError(f"kind {base!r} does not take a precision")
    return CHARACTER if base == "character" else INTEGER


def to_decimal(value: object) -> Decimal:
    """Convert ints, floats and numeric strings to Decimal without binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise SchemaError(f"{value!r} is not a number")
    try:
        # str() keeps 8.2 as 8.2 rather than 8.1999999999999992894572642399...
        return Decimal(str(value)) if isinstance(value, float) else Decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise SchemaError(f"{value!r} is not a number") from exc


@dataclass(frozen=True)
class Membership:
    values: frozenset

    def __init__(self, values: Iterable[object]) -> None:
        object.__setattr__(self, "values", frozenset(values))

    def accepts(self, value: Value) -> bool:
        if value is None:
            return False
        try:
            return value in self.values
        except TypeError:  # unhashable
            return False

    def __str__(self) -> str:
        if all(isinstance(v, Decimal) for v in self.values):
            ordered = sorted(self.values)
        else:
            ordered = sorted(self.values, key=str)
        return "membership{" + ", ".join(map(str, ordered)) + "}"


@dataclass(frozen=True)
class Range:
    min: Decimal
    max: Decimal

    def __init__(self, min: object, max: object) -> None:  # noqa: A002
        lo, hi = to_decimal(min), to_decimal(max)
        if lo > hi:
            raise SchemaError(f"range minimum {lo} exceeds maximum {hi}")
        object.__setattr__(self, "min", lo)
        object.__setattr__(self, "max", hi)

    def accepts(self, value: Value) -> bool:
        if value is None or isinstance(value, str):
            return False
        return self.min <= value <= self.max

    def __str__(self) -> str:
        return f"range[{self.min}, {self.max}]"


Constraint = Membership | Range


def parse_constraint(spec: Constraint | dict | None) -> Constraint | None:
    """Accept a Constraint or a one-key mapping ``{"membership": [...]}`` / ``{"range": [lo, hi]}``."""
    if spec is None or isinstance(spec, (Membership, Range)):
        return spec
    if not isinstance(spec, dict) or len(spec) != 1:
        raise SchemaError(f"constraint must be a single-key mapping, got {spec!r}")
    ctype, cval = next(iter(spec.items()))
    if ctype == "membership":
        if isinstance(cval, (str, bytes)) or not isinstance(cval, Iterable):
            raise SchemaError(f"membership needs a collection of values, got {cval!r}")
        return Membership(cval)
    if ctype == "range":
        if isinstance(cval, dict):
            return Range(cval["min"], cval["max"])
        if isinstance(cval, (list, tuple)) and len(cval) == 2:
            return Range(cval[0], cval[1])
        raise SchemaError(f"range needs [min, max], got {cval!r}")
    raise SchemaError(f"unknown constraint type {ctype!r}")


@dataclass(frozen=True)
class Field:
    """One column of a row: fixed-width when ``width`` is set, free-form otherwise."""

    width: int | None
    kind: Kind = CHARACTER
    justification: Justification | None = None
    name: str | None = None
    doc: str = ""
    constraint: Constraint | dict | None = None

    def __post_init__(self) -> None:
        if self.width is not None and (
            isinstance(self.width, bool) or not isinstance(self.width, int) or self.width <= 0
        ):
            raise SchemaError(f"field width must be a positive integer or None, got {self.width!r}")
        if not isinstance(self.kind, Kind):
            object.__setattr__(self, "kind", parse_kind(self.kind))
        if self.justification is None:
            object.__setattr__(self, "justification", self.kind.default_justification)
        elif self.justification not in ("left", "right"):
            raise SchemaError(f"justification must be 'left' or 'right', got {self.justification!r}")
        if self.name is not None and (not isinstance(self.name, str) or not self.name):
            raise SchemaError(f"field name must be a non-empty string, got {self.name!r}")
        constraint = parse_constraint(self.constraint)
        if isinstance(constraint, Range) and not self.kind.numeric:
            label = self.name or "unnamed field"
            raise SchemaError(f"range constraint on character field {label!r}")
        if isinstance(constraint, Membership) and self.kind.numeric:
            constraint = Membership(to_decimal(v) for v in constraint.values)
        object.__setattr__(self, "constraint", constraint)

    @property
    def free_form(self) -> bool:
        return self.width is None
