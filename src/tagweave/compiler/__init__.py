"""Tagweave Compiler - transforms templates into host (Jinja) source.

The compiler and resolver modules depend on the runtime, which in turn
imports ``tagweave.compiler.spec``; import them from their own modules.
"""

from tagweave.compiler.cache import Taglib, TaglibCache
from tagweave.compiler.loader import DictLoader, FileSystemLoader, TemplateLoader
from tagweave.compiler.spec import CompiledTemplate, TagDefinition, TagRegistry, TemplateSource

__all__ = [
    "CompiledTemplate",
    "DictLoader",
    "FileSystemLoader",
    "TagDefinition",
    "TagRegistry",
    "Taglib",
    "TaglibCache",
    "TemplateLoader",
    "TemplateSource",
]
