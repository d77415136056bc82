"""Parse a file, write it back out, and report whether the bytes survive."""

from __future__ import annotations

import json
from pathlib import Path

from flatlayout.formatter import format_tables
from flatlayout.layout.loader import load_descriptor
from flatlayout.lines import read_lines
from flatlayout.parser import parse


def roundtrip(descriptor_path: Path, input_path: Path) -> dict:
    descriptor = load_descriptor(descriptor_path)
    original = read_lines(input_path)
    tables = parse(original, descriptor)
    rewritten = format_tables(tables, descriptor)

    first_diff = None
    for idx, (before, after) in enumerate(zip(original, rewritten)):
        if before != after:
            first_diff = {"line": idx, "original": before, "rewritten": after}
            break
    if first_diff is None and len(original) != len(rewritten):
        idx = min(len(original), len(rewritten))
        first_diff = {
            "line": idx,
            "original": original[idx] if idx < len(original) else None,
            "rewritten": rewritten[idx] if idx < len(rewritten) else None,
        }

    return {
        "input": str(input_path),
        "sections": [len(t) for t in tables],
        "lines_in": len(original),
        "lines_out": len(rewritten),
        "identical": first_diff is None,
        "first_difference": first_diff,
    }


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Check that a file survives parse + format.")
    parser.add_argument("descriptor", type=Path, help="Descriptor (json/yaml).")
    parser.add_argument("input", type=Path, help="Text file to round-trip.")
    args = parser.parse_args()

    summary = roundtrip(args.descriptor, args.input)
    print(json.dumps(summary, indent=2))
