"""Line source and sink helpers; the only part of the package that touches files."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


def split_lines(text: str) -> list[str]:
    """Split an in-memory buffer on newlines; a final newline does not add an empty line."""
    lines = text.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_lines(path: Path, encoding: str = "utf-8") -> list[str]:
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")
    with path.open(encoding=encoding, newline=None) as f:
        return [line.removesuffix("\n") for line in f]


def write_lines(path: Path, lines: Iterable[str], encoding: str = "utf-8") -> None:
    """Write lines joined by newlines, with a trailing newline."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding=encoding, newline="\n") as f:
        for line in lines:
            f.write(line + "\n")
