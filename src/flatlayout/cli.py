import logging
from pathlib import Path

import orjson
import typer
import yaml
from rich.console import Console
from rich.table import Table as RichTable

from flatlayout.checker import check
from flatlayout.errors import FlatLayoutError
from flatlayout.export import dumps_payload, tables_from_payload, write_arrow, write_jsonl
from flatlayout.formatter import format_tables
from flatlayout.layout.descriptor import FileDescriptor, describe
from flatlayout.layout.loader import load_descriptor, sample_descriptor
from flatlayout.lines import read_lines, write_lines
from flatlayout.parser import parse
from flatlayout.report import append_csv, append_jsonl, report_to_rows, summarize_report

app = typer.Typer(help="Parse, check, and write sectioned fixed-width text files.")
console = Console()
SUPPORTED_FORMATS = {"json", "jsonl", "arrow"}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(descriptor: Path) -> FileDescriptor:
    if not descriptor.is_file():
        raise typer.BadParameter(f"Descriptor file not found: {descriptor}")
    try:
        return load_descriptor(descriptor)
    except FlatLayoutError as exc:
        raise typer.BadParameter(f"Invalid descriptor {descriptor}: {exc}") from exc


def _read(input: Path) -> list[str]:
    if not input.is_file():
        raise typer.BadParameter(f"Input file not found: {input}")
    return read_lines(input)


@app.command("describe")
def describe_cmd(
    descriptor: Path = typer.Argument(..., help="Descriptor (yaml/json)."),
    section: int | None = typer.Option(
        None, "--section", "-s", help="Only show this section (0-based)."
    ),
) -> None:
    """Show the field layout of each section."""
    desc = _load(descriptor)
    if desc.doc:
        console.print(f"[bold]{desc.doc}[/]")
    indices = [section] if section is not None else range(len(desc.sections))
    for idx in indices:
        if not 0 <= idx < len(desc.sections):
            raise typer.BadParameter(f"No section {idx}; descriptor has {len(desc.sections)}.")
        sec = desc.sections[idx]
        table = RichTable(title=f"Section {idx} ({sec.role}, {sec.repeat}) {sec.doc}".rstrip())
        for column in ("#", "name", "start", "end", "width", "kind", "just", "constraint", "doc"):
            table.add_column(column)
        for entry in describe(desc, idx):
            table.add_row(
                str(entry["position"]),
                str(entry["name"] or ""),
                str(entry["start"]),
                "" if entry["end"] is None else str(entry["end"]),
                "free" if entry["width"] is None else str(entry["width"]),
                str(entry["kind"]),
                str(entry["justification"]),
                str(entry["constraint"] or ""),
                str(entry["doc"] or ""),
            )
        console.print(table)
    console.print(f"terminator: {desc.terminator!r}")


@app.command("parse")
def parse_cmd(
    descriptor: Path = typer.Argument(..., help="Descriptor (yaml/json)."),
    input: Path = typer.Argument(..., help="Text file to parse."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Where to write output (a directory for arrow)."
    ),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json | jsonl | arrow."),
) -> None:
    """Parse a file into one table per section."""
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{format}'. Choose from {SUPPORTED_FORMATS}.")
    if fmt != "json" and output is None:
        raise typer.BadParameter(f"--output is required for {fmt} output.")
    desc = _load(descriptor)
    lines = _read(input)
    try:
        tables = parse(lines, desc)
    except FlatLayoutError as exc:
        console.print(f"[bold red]Parse failed:[/] {exc}")
        raise typer.Exit(code=2) from exc

    if output is None:
        typer.echo(dumps_payload(tables).decode())
    elif fmt == "arrow":
        paths = write_arrow(tables, desc, output, stem=input.stem)
        console.print(f"[bold green]Wrote[/] {len(paths)} Arrow files to {output}")
    elif fmt == "jsonl":
        write_jsonl(tables, desc, output)
        console.print(f"[bold green]Wrote JSONL[/] to {output}")
    else:
        output.write_bytes(dumps_payload(tables))
        console.print(f"[bold green]Wrote tables[/] to {output}")


@app.command("check")
def check_cmd(
    descriptor: Path = typer.Argument(..., help="Descriptor (yaml/json)."),
    input: Path = typer.Argument(..., help="Text file to parse and check."),
    log_csv: Path | None = typer.Option(
        None, "--log-csv", help="Append failures as CSV rows for trend tracking."
    ),
    log_jsonl: Path | None = typer.Option(
        None, "--log-jsonl", help="Append failures as JSONL for trend tracking."
    ),
    tag: str | None = typer.Option(None, "--tag", help="Optional tag to mark this run."),
) -> None:
    """Check field constraints; exits 1 when any value fails."""
    desc = _load(descriptor)
    lines = _read(input)
    try:
        tables = parse(lines, desc)
    except FlatLayoutError as exc:
        console.print(f"[bold red]Parse failed:[/] {exc}")
        raise typer.Exit(code=2) from exc
    report = check(tables, desc)

    rows = report_to_rows(report, source=str(input), tag=tag)
    if log_csv:
        append_csv(log_csv, rows)
        console.print(f"[bold green]Appended CSV log[/] to {log_csv}")
    if log_jsonl:
        for row in rows:
            append_jsonl(log_jsonl, row)
        console.print(f"[bold green]Appended JSONL log[/] to {log_jsonl}")

    summary = summarize_report(report)
    if report.failures:
        table = RichTable(title=f"{len(report.failures)} failed checks")
        for column in ("section", "row", "field", "constraint", "value"):
            table.add_column(column)
        for c in report.failures:
            table.add_row(
                str(c.section_index), str(c.row_index), str(c.field), c.constraint, repr(c.value)
            )
        console.print(table)
    console.print(orjson.dumps(summary, option=orjson.OPT_INDENT_2).decode())
    if not report.passed:
        raise typer.Exit(code=1)


@app.command("format")
def format_cmd(
    descriptor: Path = typer.Argument(..., help="Descriptor (yaml/json)."),
    tables_path: Path = typer.Argument(..., help="Tables as JSON ({'tables': [[row, ...], ...]})."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Where to write the file."),
) -> None:
    """Write tables back out as a fixed-width file."""
    desc = _load(descriptor)
    if not tables_path.is_file():
        raise typer.BadParameter(f"Tables file not found: {tables_path}")
    try:
        tables = tables_from_payload(orjson.loads(tables_path.read_bytes()), desc)
    except (orjson.JSONDecodeError, ValueError) as exc:
        raise typer.BadParameter(f"Unreadable tables file {tables_path}: {exc}") from exc
    try:
        lines = format_tables(tables, desc)
    except FlatLayoutError as exc:
        console.print(f"[bold red]Format failed:[/] {exc}")
        raise typer.Exit(code=2) from exc

    if output:
        write_lines(output, lines)
        console.print(f"[bold green]Wrote[/] {len(lines)} lines to {output}")
    else:
        for line in lines:
            typer.echo(line)


@app.command("sample")
def sample_cmd(
    output: Path = typer.Argument(..., help="Path to write a sample descriptor (.yaml)."),
) -> None:
    """Write an example descriptor to start from."""
    output.write_text(yaml.safe_dump(sample_descriptor(), sort_keys=False))
    console.print(f"[bold green]Wrote sample descriptor[/] to {output}")


if __name__ == "__main__":
    app()
