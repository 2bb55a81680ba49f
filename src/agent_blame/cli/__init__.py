"""CLI entry point: registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="agent-blame",
    help=f"Agent Blame {__version__} - attribute uncommitted code to AI agents or humans",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .detect import detect as _detect  # noqa: F401, E402
from .maintenance import cleanup as _cleanup, stats as _stats  # noqa: F401, E402
from .perf import perf as _perf  # noqa: F401, E402
from .report import report as _report  # noqa: F401, E402

__all__ = ["app", "console"]
