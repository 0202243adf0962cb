"""extract.py - Extract translator annotations from C++ sources.

Collects comments and marker calls with the tree-sitter C++ adapter, runs
every file through the attribution engine and prints one row per record.

Usage::

    annotext extract src/                 Table of records under src/
    annotext extract --json a.cpp b.h     JSON on stdout
    annotext extract -o strings.json src  JSON written to a file
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from annotext.cli import JsonOption, VerboseOption, error_exit, json_print, json_text, setup_logging
from annotext.config import ExtractConfig, load_config
from annotext.engine import FileInput, RecordSink, extract_files, load_cpp_file
from annotext.errors import ConfigError, FileAbortedError
from annotext.markers import MarkerTable
from annotext.record import AnnotationRecord
from annotext.utils import atomic_write_text, iter_sources

logger = logging.getLogger(__name__)

out_console = Console()


def collect_inputs(
    sources: list[Path], markers: MarkerTable, sink: RecordSink
) -> list[FileInput]:
    """Load every source, recording unreadable files as failures in *sink*."""
    inputs: list[FileInput] = []
    for path in sources:
        try:
            inputs.append(load_cpp_file(path, markers))
        except FileAbortedError as exc:
            logger.warning("%s", exc)
            sink.fail(exc.file, exc.reason)
    return inputs


def run_extract(
    paths: list[Path], cfg: ExtractConfig, workers: int | None = None
) -> RecordSink:
    """Extract records from *paths* (files or directories) using *cfg*."""
    markers = cfg.marker_table()
    sink = RecordSink()
    sources = iter_sources(paths, cfg.extensions)
    inputs = collect_inputs(sources, markers, sink)
    return extract_files(
        inputs,
        markers,
        workers=workers if workers is not None else cfg.workers,
        require_context=cfg.require_context,
        sink=sink,
    )


def _report(sink: RecordSink, records: list[AnnotationRecord]) -> dict:
    return {
        "count": len(records),
        "records": [r.to_dict() for r in records],
        "failed": [{"file": f, "reason": r} for f, r in sorted(sink.failures.items())],
    }


def _print_table(records: list[AnnotationRecord]) -> None:
    table = Table(title="Annotations", show_lines=False, pad_edge=False)
    table.add_column("Location", style="bold")
    table.add_column("Context")
    table.add_column("Source")
    table.add_column("Id")
    table.add_column("Extra comment", style="dim")
    for rec in records:
        table.add_row(
            f"{rec.location_file}:{rec.location_line}",
            rec.context,
            rec.source_text,
            rec.id,
            rec.extra_comment,
        )
    out_console.print(table)


app = typer.Typer(
    help="Extract translator annotations from C++ sources.",
    rich_markup_mode="rich",
    epilog="""\
[bold]Examples:[/bold]

annotext extract src/                       Table of every attributed site

annotext extract --json src/                Machine-readable JSON output

annotext extract -o strings.json src/       Write JSON to a file atomically

annotext extract -v widget.cpp              Log why comments were (not) attributed

[dim]Reads [extract] and [aliases] from annotext.toml when one is found
in the current directory or a parent.[/dim]""",
)


@app.callback(invoke_without_command=True)
def main(
    paths: list[Path] = typer.Argument(None, help="Files or directories to scan (default: cwd)."),
    json_output: bool = JsonOption,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write JSON to this file."),
    workers: int | None = typer.Option(None, "--workers", "-j", min=1, help="Worker threads."),
    verbose: bool = VerboseOption,
) -> None:
    """Extract translator annotations from C++ sources."""
    setup_logging(verbose)
    try:
        cfg = load_config()
    except ConfigError as exc:
        error_exit(str(exc), json_mode=json_output)

    targets = list(paths) if paths else [Path(".")]
    missing = [str(p) for p in targets if not p.exists()]
    if missing:
        error_exit(f"No such file or directory: {', '.join(missing)}", json_mode=json_output)

    sink = run_extract(targets, cfg, workers)
    records = sink.sorted_records()
    report = _report(sink, records)

    if output is not None:
        atomic_write_text(output, json_text(report))
        if not json_output:
            out_console.print(f"Wrote {len(records)} records to [bold]{output}[/bold]")

    if json_output:
        json_print(report)
    elif output is None:
        _print_table(records)
        out_console.print(f"\n{len(records)} records, {len(sink.failures)} files failed")

    if sink.failures and not records:
        raise typer.Exit(code=1)
