"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import AttributionConfig, load_config
from ..diff import git_diff
from ..exceptions import AgentBlameError
from ..service import AttributionService

console = Console()

CONTRIBUTOR_STYLES = {
    "ai": "[magenta]ai[/magenta]",
    "ai_modified": "[yellow]ai_modified[/yellow]",
    "human": "[green]human[/green]",
}


def resolve_config(
    config: Optional[Path] = None,
    retention_days: Optional[int] = None,
    developer_mode: Optional[bool] = None,
    enable_tracking: Optional[bool] = None,
) -> AttributionConfig:
    """Build configuration from CLI options."""
    overrides = {}
    if retention_days is not None:
        overrides["retention_days"] = retention_days
    if developer_mode is not None:
        overrides["developer_mode"] = developer_mode
    if enable_tracking is not None:
        overrides["enable_tracking"] = enable_tracking
    return load_config(config_file=config, **overrides)


def read_diff(root: Path, ref: str, diff_file: Optional[Path]) -> str:
    """Diff text from ``--diff-file`` or from ``git diff <ref>``."""
    if diff_file is not None:
        return diff_file.read_text(encoding="utf-8")
    text = git_diff(root, ref)
    if text is None:
        console.print(f"[red]Error:[/red] could not run git diff in {root}")
        raise typer.Exit(1)
    return text


def fail(error: AgentBlameError) -> None:
    console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)


def open_service(root: Path, config: AttributionConfig) -> AttributionService:
    return AttributionService(root.resolve(), config)
