"""Report command -- save an issue report for a suspected misattribution."""

from pathlib import Path
from typing import Optional

import typer

from ..diff import hunks_from_diff
from ..exceptions import AgentBlameError
from ..logging_config import setup_logging
from ..report.models import ExpectedResult, UserFeedback
from . import app
from ._common import CONTRIBUTOR_STYLES, console, fail, open_service, read_diff, resolve_config


@app.command()
def report(
    file: str = typer.Argument(..., help="File path as it appears in the diff"),
    start: int = typer.Option(..., "--start", help="First line of the range", min=1),
    end: int = typer.Option(..., "--end", help="Last line of the range", min=1),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Project root"),
    ref: str = typer.Option("HEAD", "--ref", "-r", help="Git ref to diff against"),
    diff_file: Optional[Path] = typer.Option(
        None, "--diff-file", help="Read a unified diff from this file instead of git",
        exists=True, dir_okay=False,
    ),
    comment: Optional[str] = typer.Option(None, "--comment", help="What looks wrong"),
    expected: Optional[ExpectedResult] = typer.Option(
        None, "--expected", help="What the attribution should have been",
    ),
    dev: bool = typer.Option(False, "--dev", help="Developer mode: include debug block"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False,
    ),
):
    """
    Save an issue report for the hunk covering FILE:START-END.

    Prompts are never included in reports.

    [bold cyan]Examples:[/bold cyan]

      agent-blame report src/app.py --start 10 --end 24 --expected should_be_human
    """
    setup_logging(verbose=verbose)

    try:
        settings = resolve_config(config=config, developer_mode=True if dev else None)
        service = open_service(path, settings)
        try:
            target = service.normalize_path(file)
            candidates = [
                hunk
                for hunk in hunks_from_diff(read_diff(path, ref, diff_file))
                if service.normalize_path(hunk.file_path) == target
                and hunk.line_range[0] <= end
                and hunk.line_range[1] >= start
            ]
            if not candidates:
                console.print(f"[red]Error:[/red] no added lines in {file}:{start}-{end}")
                raise typer.Exit(1)

            hunk = candidates[0]
            result = service.detect(hunk, enable_tracking=True)
            feedback = None
            if comment is not None or expected is not None:
                feedback = UserFeedback(comment=comment, expected_result=expected)
            issue = service.build_report(hunk, result, user_feedback=feedback)
            saved = service.save_report(issue)
        finally:
            service.close()
    except AgentBlameError as e:
        fail(e)
        return

    console.print(
        f"Verdict: {CONTRIBUTOR_STYLES[result.contributor.value]} "
        f"(similarity {result.similarity:.2f})"
    )
    console.print(f"Report saved to: [bold green]{saved}[/bold green]")
