"""Flatten check reports for CSV/JSONL trend logs and summarise those logs."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from flatlayout.checker import CheckReport


def _plain(value: object) -> object:
    return str(value) if isinstance(value, Decimal) else value


def summarize_report(report: CheckReport) -> dict[str, Any]:
    """Checked/failed counts per ``section:field``."""
    fields: dict[str, dict[str, int]] = {}
    for c in report.checks:
        counts = fields.setdefault(f"{c.section_index}:{c.field}", {"checked": 0, "failed": 0})
        counts["checked"] += 1
        if not c.passed:
            counts["failed"] += 1
    return {
        "passed": report.passed,
        "checked": len(report.checks),
        "failed": len(report.failures),
        "fields": fields,
        "warnings": list(report.warnings),
    }


def report_to_rows(report: CheckReport, source: str, tag: str | None = None) -> list[dict]:
    """One row per failed check; a passing report yields one summary row."""
    timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    base = {"timestamp": timestamp, "source": source, "tag": tag or ""}
    failures = report.failures
    if not failures:
        return [
            {
                **base,
                "section": "",
                "row": "",
                "field": "",
                "constraint": "",
                "value": "",
                "passed": True,
            }
        ]
    return [
        {
            **base,
            "section": c.section_index,
            "row": c.row_index,
            "field": c.field,
            "constraint": c.constraint,
            "value": _plain(c.value),
            "passed": False,
        }
        for c in failures
    ]


def append_csv(path: Path, rows: list[dict]) -> None:
    """Append rows to a CSV file, writing headers when the file is new."""
    if not rows:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not path.exists()
    with path.open("a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        if is_new:
            writer.writeheader()
        writer.writerows(rows)


def append_jsonl(path: Path, payload: dict) -> None:
    """Append a JSON line (UTF-8) to a log file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(payload, default=_plain) + "\n")


def _iter_csv(path: Path) -> Iterator[dict[str, str]]:
    with path.open(newline="") as f:
        yield from csv.DictReader(f)


def _iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    with path.open() as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def iter_log_entries(path: Path) -> Iterator[dict[str, Any]]:
    """Yield entries of a CSV or JSONL log, chosen by file suffix."""
    if path.suffix.lower() == ".csv":
        yield from _iter_csv(path)
    else:
        yield from _iter_jsonl(path)


def _is_true(value: object) -> bool:
    return value is True or str(value).lower() == "true"


def summarize_log(path: Path) -> dict[str, object]:
    """Aggregate a check log: entries, failures, and failures per field."""
    entries = 0
    failures = 0
    sources: set[str] = set()
    field_failures: dict[str, int] = {}

    for entry in iter_log_entries(path):
        entries += 1
        sources.add(str(entry.get("source", "")))
        if _is_true(entry.get("passed")):
            continue
        failures += 1
        key = f"{entry.get('section')}:{entry.get('field')}"
        field_failures[key] = field_failures.get(key, 0) + 1

    return {
        "entries": entries,
        "failures": failures,
        "sources": sorted(sources),
        "field_failures": field_failures,
    }
