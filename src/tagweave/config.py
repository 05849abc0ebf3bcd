"""Configuration management for tagweave.

Settings come from an optional ``tagweave.yaml``:
- root: directory template and taglib paths are relative to
- extension: file extension appended to taglib references
- plugin_prefix / plugin_area: ``plugins/...`` references live under plugin_area
- view_area: slash-containing references live under view_area
- app_prefix: templates under this prefix take part in the auto-import chain
- auto_taglibs: taglibs imported implicitly, in chain order
- extra_static_tags: element names treated as plain markup on top of HTML
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

log = logging.getLogger(__name__)

SETTINGS_FILE = "tagweave.yaml"

HTML_TAGS = frozenset(
    """
    a abbr acronym address applet area article aside audio b base basefont bdi
    bdo big blockquote body br button canvas caption center cite code col
    colgroup data datalist dd del details dfn dialog dir div dl dt em embed
    fieldset figcaption figure font footer form frame frameset h1 h2 h3 h4 h5 h6
    head header hgroup hr html i iframe img input ins kbd label legend li link
    main map mark menu meta meter nav noframes noscript object ol optgroup
    option output p param picture pre progress q rp rt ruby s samp script
    search section select slot small source span strike strong style sub
    summary sup table tbody td template textarea tfoot th thead time title tr
    track tt u ul var video wbr
    """.split()
)


class CompilerSettings(BaseModel):
    """Compiler settings, usually loaded from tagweave.yaml."""

    root: Path = Field(default=Path("."), description="Template root directory")
    extension: str = Field(default=".weave", description="Template file extension")
    plugin_prefix: str = Field(
        default="plugins", description="Reference prefix for shared plugin taglibs"
    )
    plugin_area: str = Field(
        default="vendor", description="Directory holding plugin taglibs"
    )
    view_area: str = Field(
        default="app/views", description="Directory for slash-containing references"
    )
    app_prefix: str = Field(
        default="app", description="Templates under this prefix use the auto chain"
    )
    auto_taglibs: list[str] = Field(
        default_factory=list, description="Taglibs imported implicitly, in chain order"
    )
    extra_static_tags: list[str] = Field(
        default_factory=list, description="Additional plain-markup element names"
    )

    @property
    def static_tags(self) -> frozenset[str]:
        """Element names compiled as pass-through markup."""
        return HTML_TAGS | frozenset(self.extra_static_tags)


def find_settings_file(start: Path | None = None) -> Path | None:
    """Find tagweave.yaml in the start directory or its parents."""
    cwd = start or Path.cwd()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / SETTINGS_FILE
        if candidate.exists():
            return candidate
    return None


def load_settings(path: Path | None = None, **overrides: Any) -> CompilerSettings:
    """Load settings from ``path`` (if it exists) and apply overrides.

    Priority:
    1. Keyword overrides
    2. TAGWEAVE_ROOT environment variable (root only)
    3. Values from the YAML file
    4. Defaults

    A relative ``root`` in the file is taken relative to the file's directory.
    """
    data: dict[str, Any] = {}
    if path is not None and path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "root" in data:
            data["root"] = path.parent / data["root"]
        else:
            data["root"] = path.parent
        log.debug(f"Loaded settings from {path}")

    env_root = os.environ.get("TAGWEAVE_ROOT")
    if env_root:
        data["root"] = Path(env_root).expanduser()
        log.debug(f"Using TAGWEAVE_ROOT from env: {data['root']}")

    data.update(overrides)
    return CompilerSettings(**data)
