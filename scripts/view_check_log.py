"""Quick viewer for check logs (CSV or JSONL) written by ``flatlayout check``.

Shows failure totals per field and per tag in Rich tables.
"""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.table import Table

from flatlayout.report import iter_log_entries, summarize_log


def main() -> None:
    parser = argparse.ArgumentParser(description="View check logs.")
    parser.add_argument("log", type=Path, help="CSV or JSONL log file.")
    args = parser.parse_args()

    console = Console()
    summary = summarize_log(args.log)

    console.print("[bold]Aggregate[/]")
    console.print(
        f"- entries: {summary['entries']}, failures: {summary['failures']}, "
        f"sources: {len(summary['sources'])}"
    )

    field_table = Table(title="Failures by section:field")
    field_table.add_column("Field")
    field_table.add_column("Failures", justify="right")
    field_failures = summary.get("field_failures", {}) or {}
    for key, count in sorted(field_failures.items(), key=lambda kv: kv[1], reverse=True):
        field_table.add_row(key, str(count))
    console.print(field_table)

    tag_failures: Counter[str] = Counter()
    for entry in iter_log_entries(args.log):
        tag = str(entry.get("tag") or "")
        if tag and str(entry.get("passed")).lower() != "true":
            tag_failures[tag] += 1
    if tag_failures:
        tag_table = Table(title="Failures by tag")
        tag_table.add_column("Tag")
        tag_table.add_column("Failures", justify="right")
        for tag, count in tag_failures.most_common():
            tag_table.add_row(tag, str(count))
        console.print(tag_table)


if __name__ == "__main__":
    main()
