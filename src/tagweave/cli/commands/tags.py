"""Tags command - list the tags a template defines or imports"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.table import Table

from tagweave.errors import TagweaveError

from .utils import console, exit_with_error, get_engine


def tags_command(file: Path, taglib: bool = False, settings_file: Optional[Path] = None) -> None:
    """Show every tag visible to FILE with its declared attributes."""
    engine = get_engine(settings_file)
    try:
        compiled = engine.compile_file(file.resolve(), taglib=taglib)
    except TagweaveError as exc:
        exit_with_error(str(exc))

    if not compiled.tags:
        console.print("[yellow]No tags found[/yellow]")
        return

    local = set(compiled.tag_sources)
    table = Table()
    table.add_column("Tag", style="cyan")
    table.add_column("Attrs")
    table.add_column("Source")
    for name in sorted(compiled.tags):
        table.add_row(
            name,
            ", ".join(compiled.tags[name]),
            "[green]local[/green]" if name in local else "[dim]imported[/dim]",
        )
    console.print(table)
