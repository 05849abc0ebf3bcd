"""Template engine - the entry point tying settings, loader, cache and compiler together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from tagweave.compiler.cache import Taglib, TaglibCache
from tagweave.compiler.compiler import TemplateCompiler
from tagweave.compiler.loader import FileSystemLoader, TemplateLoader
from tagweave.compiler.resolver import TaglibResolver
from tagweave.compiler.spec import CompiledTemplate, TemplateSource
from tagweave.config import CompilerSettings
from tagweave.runtime.context import RenderedPage
from tagweave.runtime.environment import PageEnvironment, TaglibEnvironment, TemplateEnvironment

log = logging.getLogger(__name__)


def compile_template(
    src: str,
    path: str,
    environment: TemplateEnvironment,
    resolver: Optional[TaglibResolver] = None,
    local_names: Iterable[str] = (),
    auto_taglibs: bool = True,
) -> CompiledTemplate:
    """Compile ``src`` into ``environment``.

    Args:
        src: Template source text.
        path: Template path, relative to the template root.
        environment: PageEnvironment for pages, TaglibEnvironment for taglibs.
        resolver: Resolver for taglib imports. Optional for self-contained templates.
        local_names: Names the page body reads from local assigns.
        auto_taglibs: Import the configured taglib chain first.

    Returns:
        CompiledTemplate describing the generated host source.
    """
    compiler = TemplateCompiler(TemplateSource(src, path, environment), resolver=resolver)
    return compiler.compile(local_names=local_names, auto_taglibs=auto_taglibs)


class TemplateEngine:
    """Compiles pages and taglibs against one template root.

    Example:
        engine = TemplateEngine(load_settings(find_settings_file()))
        page = engine.compile_file("app/views/users/show.weave")
        print(page.environment.render_page(user).output)
    """

    def __init__(
        self,
        settings: Optional[CompilerSettings] = None,
        loader: Optional[TemplateLoader] = None,
        cache: Optional[TaglibCache] = None,
    ):
        self.settings = settings or CompilerSettings()
        self.loader = loader or FileSystemLoader(self.settings.root)
        self.cache = cache or TaglibCache()
        self.resolver = TaglibResolver(self.settings, self.loader, self.cache)

    def template_path(self, path: str | Path) -> str:
        """Path relative to the template root, with forward slashes."""
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(Path(self.settings.root).resolve())
            except ValueError:
                pass
        return p.as_posix()

    def compile_string(
        self,
        src: str,
        path: str = "<string>",
        *,
        taglib: bool = False,
        local_names: Iterable[str] = (),
        auto_taglibs: bool = True,
    ) -> CompiledTemplate:
        """Compile template source into a fresh page (or taglib) environment."""
        environment = TaglibEnvironment(path) if taglib else PageEnvironment(path)
        return compile_template(
            src,
            path,
            environment,
            resolver=self.resolver,
            local_names=local_names,
            auto_taglibs=auto_taglibs,
        )

    def compile_file(
        self,
        path: str | Path,
        *,
        taglib: bool = False,
        local_names: Iterable[str] = (),
        auto_taglibs: bool = True,
    ) -> CompiledTemplate:
        """Load ``path`` through the loader and compile it.

        Raises:
            TaglibNotFoundError: If the loader has no source for ``path``.
            CompilationError: If the template is invalid.
        """
        template_path = self.template_path(path)
        src = self.loader.load(template_path)
        log.debug(f"loaded {template_path}")
        return self.compile_string(
            src,
            template_path,
            taglib=taglib,
            local_names=local_names,
            auto_taglibs=auto_taglibs,
        )

    def get_taglib(self, path: str | Path) -> Taglib:
        """The cached taglib at ``path`` (including its extension)."""
        return self.resolver.load(self.template_path(path))

    def render_string(self, src: str, this: Any = None, path: str = "<string>", **local_assigns: Any) -> RenderedPage:
        """Compile and render a page in one go."""
        compiled = self.compile_string(src, path, local_names=local_assigns.keys())
        return compiled.environment.render_page(this, local_assigns)
