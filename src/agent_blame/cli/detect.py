"""Detect command -- attribute every hunk in the working tree diff."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..detection import ContributorDetector
from ..exceptions import AgentBlameError
from ..logging_config import setup_logging
from . import app
from ._common import CONTRIBUTOR_STYLES, console, fail, open_service, read_diff, resolve_config


@app.command()
def detect(
    path: Path = typer.Argument(Path("."), help="Project root"),
    ref: str = typer.Option("HEAD", "--ref", "-r", help="Git ref to diff against"),
    diff_file: Optional[Path] = typer.Option(
        None, "--diff-file", help="Read a unified diff from this file instead of git",
        exists=True, dir_okay=False,
    ),
    track: bool = typer.Option(False, "--track", help="Collect per-stage performance metrics"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False,
    ),
):
    """
    Attribute each added-lines hunk to an AI agent or a human.

    [bold cyan]Examples:[/bold cyan]

      agent-blame detect

      agent-blame detect --ref main --track --json
    """
    setup_logging(verbose=verbose)

    try:
        settings = resolve_config(config=config, enable_tracking=True if track else None)
        service = open_service(path, settings)
        try:
            results = service.detect_diff(read_diff(path, ref, diff_file))
        finally:
            service.close()
    except AgentBlameError as e:
        fail(e)
        return

    summary = ContributorDetector.summarize([result for _, result in results])

    if json_output:
        hunks = []
        for hunk, result in results:
            start, end = hunk.line_range
            record = result.matched_record
            hunks.append(
                {
                    "file": hunk.file_path,
                    "line_range": [start, end],
                    "contributor": result.contributor.value,
                    "similarity": result.similarity,
                    "confidence": result.confidence,
                    "agent": record.session_source.agent if record else None,
                    "session_id": record.session_source.session_id if record else None,
                    "performance": (
                        result.performance_metrics.to_dict() if result.performance_metrics else None
                    ),
                }
            )
        console.print_json(json.dumps({"hunks": hunks, "summary": summary.to_dict()}))
        return

    if not results:
        console.print("[dim]No added lines in the diff.[/dim]")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("File", min_width=24)
    table.add_column("Lines", justify="right")
    table.add_column("Contributor")
    table.add_column("Similarity", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Agent")
    if track:
        table.add_column("Time", justify="right")

    for hunk, result in results:
        start, end = hunk.line_range
        record = result.matched_record
        row = [
            hunk.file_path,
            f"{start}-{end}",
            CONTRIBUTOR_STYLES[result.contributor.value],
            f"{result.similarity:.2f}",
            f"{result.confidence:.2f}",
            record.session_source.agent if record else "[dim]--[/dim]",
        ]
        if track:
            metrics = result.performance_metrics
            row.append(f"{metrics.total_ms:.1f}ms" if metrics else "--")
        table.add_row(*row)

    console.print(table)
    console.print(
        f"{summary.total} hunk(s): "
        f"{CONTRIBUTOR_STYLES['ai']} {summary.ai}, "
        f"{CONTRIBUTOR_STYLES['ai_modified']} {summary.ai_modified}, "
        f"{CONTRIBUTOR_STYLES['human']} {summary.human} "
        f"(average similarity {summary.average_similarity:.2f})"
    )
