"""Storage maintenance commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import AgentBlameError
from ..logging_config import setup_logging
from . import app
from ._common import console, fail, open_service, resolve_config


@app.command()
def cleanup(
    path: Path = typer.Argument(Path("."), help="Project root"),
    retention_days: Optional[int] = typer.Option(
        None, "--retention-days", help="Keep this many days of shards", min=0,
    ),
    force: bool = typer.Option(
        True, "--force/--if-due", help="Run now, or only when the check interval has elapsed",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False,
    ),
):
    """Delete change and prompt shards older than the retention window."""
    setup_logging(verbose=verbose)

    try:
        settings = resolve_config(config=config, retention_days=retention_days)
        service = open_service(path, settings)
        try:
            result = service.run_cleanup(force=force)
        finally:
            service.close()
    except AgentBlameError as e:
        fail(e)
        return

    if result is None:
        console.print("[dim]Cleanup not due yet.[/dim]")
        return

    console.print(
        f"Removed [yellow]{result.files_removed}[/yellow] shard(s), "
        f"freed [yellow]{result.bytes_freed / 1024:.1f} KB[/yellow] "
        f"(retention {settings.retention_days} days)"
    )
    for name in result.removed_files:
        console.print(f"  [dim]{name}[/dim]")


@app.command()
def stats(
    path: Path = typer.Argument(Path("."), help="Project root"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (TOML)", exists=True, dir_okay=False,
    ),
):
    """Show shard counts, size and date range."""
    try:
        service = open_service(path, resolve_config(config=config))
        try:
            storage = service.cleanup_manager.stats()
        finally:
            service.close()
    except AgentBlameError as e:
        fail(e)
        return

    console.print("[bold cyan]Agent Blame Storage[/bold cyan]")
    console.print()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key")
    table.add_column("Value")
    table.add_row("Directory", f"[blue]{service.store.hook_data_path}[/blue]")
    table.add_row("Files", str(storage.total_files))
    for dir_name, count in storage.files_by_dir.items():
        table.add_row(f"  {dir_name}", str(count))
    table.add_row("Size", f"{storage.total_size_kb:.2f} KB")
    table.add_row("Oldest", storage.oldest_file or "--")
    table.add_row("Newest", storage.newest_file or "--")
    console.print(table)
