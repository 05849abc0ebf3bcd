"""Tagweave - compiles tag-based XML templates into Jinja templates.

Templates define reusable tags with ``<def>``, call them like markup, pass
structured content through ``<:param>`` elements, and mark fragments as
independently renderable parts.
"""

from tagweave._version import __version__
from tagweave.compiler.cache import Taglib, TaglibCache
from tagweave.compiler.loader import DictLoader, FileSystemLoader
from tagweave.compiler.spec import CompiledTemplate, TagDefinition
from tagweave.config import CompilerSettings, find_settings_file, load_settings
from tagweave.engine import TemplateEngine, compile_template
from tagweave.errors import CompilationError, RenderError, TaglibNotFoundError, TagweaveError
from tagweave.runtime import PageEnvironment, RenderedPage, TaglibEnvironment, helper, tag

__all__ = [
    "__version__",
    "CompilationError",
    "CompiledTemplate",
    "CompilerSettings",
    "DictLoader",
    "FileSystemLoader",
    "PageEnvironment",
    "RenderError",
    "RenderedPage",
    "TagDefinition",
    "Taglib",
    "TaglibCache",
    "TaglibEnvironment",
    "TaglibNotFoundError",
    "TagweaveError",
    "TemplateEngine",
    "compile_template",
    "find_settings_file",
    "helper",
    "load_settings",
    "tag",
]
