"""Render command - compile a page and render it with YAML data"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from tagweave.errors import TagweaveError

from .utils import exit_with_error, get_engine


def load_data(path: Optional[Path]) -> dict[str, Any]:
    """Read render data: ``this`` plus any local assigns."""
    if path is None:
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        exit_with_error(f"{path}: expected a mapping at the top level")
    return data


def render_command(
    file: Path,
    data_file: Optional[Path] = None,
    part: Optional[str] = None,
    show_parts: bool = False,
    settings_file: Optional[Path] = None,
) -> None:
    """Render FILE. The ``this`` key of the data file becomes the page object."""
    data = load_data(data_file)
    this = data.pop("this", None)
    engine = get_engine(settings_file)
    try:
        compiled = engine.compile_file(file.resolve(), local_names=data.keys())
        environment = compiled.environment
        if part is not None:
            typer.echo(environment.render_part(part, this), nl=False)
            return
        page = environment.render_page(this, data)
    except TagweaveError as exc:
        exit_with_error(str(exc))

    typer.echo(page.output, nl=False)
    if show_parts:
        for dom_id, ref in page.parts.items():
            typer.secho(f"{dom_id} -> part {ref.part_name}", err=True, fg=typer.colors.CYAN)
