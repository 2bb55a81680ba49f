"""Performance log summary command."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import AgentBlameError
from . import app
from ._common import console, fail, open_service, resolve_config


@app.command()
def perf(
    path: Path = typer.Argument(Path("."), help="Project root"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False,
    ),
):
    """Summarize logged detection timings."""
    try:
        service = open_service(path, resolve_config(config=config))
        try:
            summary = service.performance_summary()
            threshold = service.config.detector.performance_threshold_ms
        finally:
            service.close()
    except AgentBlameError as e:
        fail(e)
        return

    if summary.count == 0:
        console.print("[dim]No tracked detections logged yet. Run detect with --track.[/dim]")
        return

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Detections", str(summary.count))
    warn_style = "red" if summary.warning_count else "green"
    table.add_row(
        f"Over {threshold:.0f}ms", f"[{warn_style}]{summary.warning_count}[/{warn_style}]"
    )
    table.add_row("Match rate", f"{summary.match_rate:.0%}")
    table.add_row("Mean", f"{summary.mean_ms:.1f}ms")
    table.add_row("p50", f"{summary.p50_ms:.1f}ms")
    table.add_row("p95", f"{summary.p95_ms:.1f}ms")
    table.add_row("Max", f"{summary.max_ms:.1f}ms")

    console.print("[bold cyan]Detection Performance[/bold cyan]")
    console.print(table)
