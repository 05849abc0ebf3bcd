"""Template loaders - resolve a taglib path to its source text."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Protocol

from tagweave.errors import TaglibNotFoundError


class TemplateLoader(Protocol):
    """Anything that can turn a resolved path into source text."""

    def load(self, path: str) -> str:
        """Return the source for ``path`` or raise TaglibNotFoundError."""
        ...


class FileSystemLoader:
    """Loads templates from files under a root directory."""

    def __init__(self, root: Optional[Path] = None):
        self.root = root or Path.cwd()

    def load(self, path: str) -> str:
        p = Path(path)
        if not p.is_absolute():
            p = self.root / p
        if not p.is_file():
            raise TaglibNotFoundError(path)
        return p.read_text(encoding="utf-8")


class DictLoader:
    """Loads templates from an in-memory mapping of path -> source."""

    def __init__(self, sources: Mapping[str, str]):
        self.sources = dict(sources)

    def load(self, path: str) -> str:
        try:
            return self.sources[path]
        except KeyError:
            raise TaglibNotFoundError(path) from None
