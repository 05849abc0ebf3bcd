"""Compile command - print or write the generated host source"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from tagweave.errors import TagweaveError

from .utils import exit_with_error, get_engine


def compile_command(
    file: Path,
    taglib: bool = False,
    auto_taglibs: bool = True,
    output: Optional[Path] = None,
    settings_file: Optional[Path] = None,
) -> None:
    """Compile FILE and emit the page body source (or nothing but tags for a taglib)."""
    engine = get_engine(settings_file)
    try:
        compiled = engine.compile_file(file.resolve(), taglib=taglib, auto_taglibs=auto_taglibs)
    except TagweaveError as exc:
        exit_with_error(str(exc))

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(compiled.source, encoding="utf-8")
        typer.echo(f"Wrote compiled template to {output}")
        return
    typer.echo(compiled.source, nl=False)
