"""
Logging configuration for Agent Blame.

Library modules only create loggers under the ``agent_blame`` namespace via
``get_logger``; handlers are installed by the CLI through ``setup_logging``.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "agent_blame"

# Marks handlers installed here so repeated setup replaces rather than stacks them
_HANDLER_FLAG = "_agent_blame_handler"


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Attach a rich stderr handler (and optionally a file handler) to the
    ``agent_blame`` logger.

    Safe to call once per CLI invocation; earlier handlers from this function
    are removed first.

    Args:
        verbose: DEBUG level, with source paths and tracebacks showing locals
        quiet: Only ERROR and above
        log_file: Also append plain-text records to this file

    Returns:
        The configured ``agent_blame`` logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    rich_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_FLAG, True)
        handler.setLevel(level)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module, always inside the ``agent_blame`` namespace.

    Args:
        name: Usually ``__name__``; names outside the namespace are prefixed

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
