"""Tagweave CLI Main Entry Point

Usage:
    tagweave compile page.weave              # Print generated host source
    tagweave compile lib.weave --taglib      # Compile as a taglib
    tagweave render page.weave -d data.yaml  # Render with data
    tagweave render page.weave --part cart   # Render a single part
    tagweave tags page.weave                 # List visible tags
    tagweave --version                       # Show version
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from tagweave._version import __version__

from .commands import compile_command, render_command, tags_command
from .commands.utils import setup_logging

typer_app = typer.Typer(help="Compile tag-based XML templates into Jinja templates.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tagweave {__version__}")
        raise typer.Exit()


@typer_app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show INFO logs."),
) -> None:
    setup_logging(verbose)


@typer_app.command("compile")
def compile_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Template file."),
    taglib: bool = typer.Option(False, "--taglib", help="Compile as a taglib."),
    auto_taglibs: bool = typer.Option(
        True, "--auto/--no-auto", help="Import the configured auto taglibs."
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Write the generated source to a file."
    ),
    settings_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to tagweave.yaml."
    ),
) -> None:
    """Compile a template and print the generated host source."""
    compile_command(file, taglib, auto_taglibs, output, settings_file)


@typer_app.command("render")
def render_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Page template."),
    data_file: Optional[Path] = typer.Option(
        None, "-d", "--data", exists=True, help="YAML file with 'this' and local assigns."
    ),
    part: Optional[str] = typer.Option(None, "-p", "--part", help="Render only this part."),
    show_parts: bool = typer.Option(
        False, "--show-parts", help="List rendered parts on stderr."
    ),
    settings_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to tagweave.yaml."
    ),
) -> None:
    """Compile a page and render it."""
    render_command(file, data_file, part, show_parts, settings_file)


@typer_app.command("tags")
def tags_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Template file."),
    taglib: bool = typer.Option(False, "--taglib", help="Compile as a taglib."),
    settings_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to tagweave.yaml."
    ),
) -> None:
    """List the tags a template defines or imports."""
    tags_command(file, taglib, settings_file)


def app() -> None:
    """Entry point for the installed ``tagweave`` script."""
    typer_app()


if __name__ == "__main__":
    app()
