"""Shared utilities for CLI commands"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from tagweave.config import find_settings_file, load_settings
from tagweave.engine import TemplateEngine

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the tagweave CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows taglib imports and compiles
    - Debug (TAGWEAVE_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get("TAGWEAVE_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("tagweave")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def get_engine(settings_file: Optional[Path] = None, root: Optional[Path] = None) -> TemplateEngine:
    """Build an engine from tagweave.yaml (found from cwd if not given)."""
    path = settings_file or find_settings_file()
    overrides = {"root": root} if root is not None else {}
    return TemplateEngine(load_settings(path, **overrides))


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)
