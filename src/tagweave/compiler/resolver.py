"""Resolver - maps taglib references to paths and loads compiled taglibs.

Reference forms:
- ``plugins/<name>/...``  -> ``<plugin_area>/plugins/<name>/...``
- ``<dir>/<name>``        -> ``<view_area>/<dir>/<name>``
- ``<name>``              -> next to the importing template

The configured extension is appended in every case.
"""

from __future__ import annotations

import logging
import posixpath

from tagweave.compiler.cache import Taglib, TaglibCache
from tagweave.compiler.compiler import TemplateCompiler
from tagweave.compiler.loader import TemplateLoader
from tagweave.compiler.spec import TemplateSource
from tagweave.config import CompilerSettings
from tagweave.runtime.environment import TaglibEnvironment

log = logging.getLogger(__name__)


class TaglibResolver:
    """Resolves and loads taglibs through a loader and a shared cache."""

    def __init__(self, settings: CompilerSettings, loader: TemplateLoader, cache: TaglibCache):
        self.settings = settings
        self.loader = loader
        self.cache = cache

    def expand_path(self, ref: str, template_path: str) -> str:
        """Turn a taglib reference into a path relative to the template root.

        Args:
            ref: Reference as written in ``<taglib src="...">``.
            template_path: Path of the importing template.
        """
        s = self.settings
        if ref.startswith(s.plugin_prefix + "/"):
            path = posixpath.join(s.plugin_area, ref)
        elif "/" in ref:
            path = posixpath.join(s.view_area, ref)
        else:
            path = posixpath.join(posixpath.dirname(template_path), ref)
        return path + s.extension

    def load(self, path: str) -> Taglib:
        """Return the compiled taglib at ``path``, compiling it on first use.

        Raises:
            TaglibNotFoundError: If the loader has no source for ``path``.
            CompilationError: If the taglib itself fails to compile.
        """
        return self.cache.get_or_compile(path, lambda: self._compile(path))

    def _compile(self, path: str) -> Taglib:
        src = self.loader.load(path)
        environment = TaglibEnvironment(path)
        compiler = TemplateCompiler(TemplateSource(src, path, environment), resolver=self)
        compiler.compile()
        log.info(f"compiled taglib {path} ({len(compiler.tags)} tags)")
        return Taglib(path, environment, compiler.tags.snapshot())
