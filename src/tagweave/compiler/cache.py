"""Taglib cache - compiled libraries shared by every compilation in a process.

Readers only ever see "not compiled yet" or a fully compiled Taglib: entries
are published after the compile finishes, and a per-path lock makes sure at
most one compile of a given path runs at a time.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, Optional, Set

from tagweave.compiler.spec import TagDefinition

if TYPE_CHECKING:
    from tagweave.runtime.environment import TaglibEnvironment

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Taglib:
    """A compiled tag library: its registry and the environment holding its methods."""

    path: str
    environment: "TaglibEnvironment"
    tags: Dict[str, TagDefinition] = field(default_factory=dict)

    def import_into(self, environment, alias: Optional[str] = None) -> Dict[str, TagDefinition]:
        """Adopt this library's methods into ``environment``.

        Returns the tag definitions to merge into the importer's registry,
        prefixed with ``alias.`` when an alias is given.
        """
        environment.adopt(self.environment, alias)
        if alias is None:
            return dict(self.tags)
        return {f"{alias}.{name}": tag.alias(f"{alias}.{name}") for name, tag in self.tags.items()}


class TaglibCache:
    """Injectable, thread-safe path -> Taglib cache."""

    def __init__(self):
        self._entries: Dict[str, Taglib] = {}
        self._lock = threading.Lock()
        self._path_locks: Dict[str, threading.Lock] = {}
        self._local = threading.local()

    def get(self, path: str) -> Optional[Taglib]:
        with self._lock:
            return self._entries.get(path)

    def get_or_compile(self, path: str, compile_fn: Callable[[], Taglib]) -> Taglib:
        """Return the cached Taglib for ``path``, compiling it on first use."""
        cached = self.get(path)
        if cached is not None:
            log.debug(f"taglib cache hit: {path}")
            return cached

        with self._lock:
            path_lock = self._path_locks.setdefault(path, threading.Lock())

        with path_lock:
            cached = self.get(path)
            if cached is not None:
                return cached

            compiling = self._compiling()
            compiling.add(path)
            try:
                taglib = compile_fn()
            finally:
                compiling.discard(path)

            with self._lock:
                self._entries[path] = taglib
            log.debug(f"taglib compiled and cached: {path}")
            return taglib

    def is_compiling(self, path: str) -> bool:
        """True if this thread is currently compiling ``path`` (an import cycle)."""
        return path in self._compiling()

    def clear(self) -> None:
        """Drop every entry and its path lock. For external reload mechanisms."""
        with self._lock:
            self._entries.clear()
            self._path_locks.clear()

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _compiling(self) -> Set[str]:
        if not hasattr(self._local, "paths"):
            self._local.paths = set()
        return self._local.paths
