"""Runtime for compiled templates: environments, render context and helpers."""

from tagweave.runtime.context import (
    BoundTag,
    PartMethod,
    PartRef,
    PythonTag,
    RenderContext,
    RenderedPage,
    TagBody,
    TagMethod,
)
from tagweave.runtime.environment import (
    ModuleBehavior,
    PageEnvironment,
    TaglibEnvironment,
    TemplateEnvironment,
)
from tagweave.runtime.helpers import helper, merge_options, tag, xattrs
from tagweave.runtime.host import compile_host, get_host_environment, unreserve

__all__ = [
    "BoundTag",
    "ModuleBehavior",
    "PageEnvironment",
    "PartMethod",
    "PartRef",
    "PythonTag",
    "RenderContext",
    "RenderedPage",
    "TagBody",
    "TagMethod",
    "TaglibEnvironment",
    "TemplateEnvironment",
    "compile_host",
    "get_host_environment",
    "helper",
    "merge_options",
    "tag",
    "unreserve",
    "xattrs",
]
