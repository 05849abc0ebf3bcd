"""Render-time objects: the per-render context, tag methods and tag bodies."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional

from jinja2 import Template

from tagweave.compiler.spec import TagDefinition
from tagweave.errors import RenderError
from tagweave.runtime.helpers import merge_options, resolve_field, xattrs
from tagweave.runtime.host import unreserve

if TYPE_CHECKING:
    from tagweave.runtime.environment import TemplateEnvironment

_MISSING = object()


@dataclass(frozen=True)
class PartRef:
    """A part rendered on a page: which part, and the object it rendered for."""

    part_name: str
    this: Any = None


@dataclass
class RenderedPage:
    """Output of a page render plus the parts it contains, keyed by DOM id."""

    output: str
    parts: Dict[str, PartRef] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.output


class TagMethod:
    """A tag defined in template markup, compiled to its own host template."""

    def __init__(self, definition: TagDefinition, template: Template):
        self.definition = definition
        self.template = template

    def render(self, context: "RenderContext", options: Any = None, caller: Optional[Callable] = None) -> str:
        values = dict(options) if isinstance(options, Mapping) else {}
        this = context.scoped_this(values)
        variables: Dict[str, Any] = {name: values.pop(name, None) for name in self.definition.attrs}
        variables["options"] = values
        variables["tagbody"] = TagBody(context, caller, this, context.caller_scope) if caller is not None else None
        with context.object_context(this):
            return context.render(self.template, variables)


class PythonTag:
    """A tag implemented by a decorated Python function."""

    def __init__(self, definition: TagDefinition, fn: Callable):
        self.definition = definition
        self.fn = fn

    def render(self, context: "RenderContext", options: Any = None, caller: Optional[Callable] = None) -> str:
        values = dict(options) if isinstance(options, Mapping) else {}
        this = context.scoped_this(values)
        tagbody = TagBody(context, caller, this, context.caller_scope) if caller is not None else None
        with context.object_context(this):
            result = self.fn(context, values, tagbody)
        return "" if result is None else str(result)


class PartMethod:
    """A part: a fragment of a page that can be rendered on its own."""

    def __init__(self, name: str, template: Template):
        self.name = name
        self.template = template

    def render(self, context: "RenderContext") -> str:
        return context.render(self.template, {})


class TagBody:
    """The children of a tag call, callable from inside the tag's definition."""

    def __init__(self, context: "RenderContext", caller: Callable, this: Any = None, scope: Any = None):
        self.context = context
        self.caller = caller
        self.this = this
        self.scope = scope if scope is not None else context.scope

    def call(self, obj: Any = _MISSING, attr: Optional[str] = None) -> str:
        """Render the body, optionally with a different ``this``."""
        this = self.this if obj is _MISSING else obj
        if attr:
            this = resolve_field(this, attr)
        with self.context.environment_scope(self.scope), self.context.object_context(this):
            return str(self.caller(this))

    __call__ = call

    def __bool__(self) -> bool:
        return True


class BoundTag:
    """A tag method bound to a render context, callable from host code.

    ``scope`` is the environment the tag was looked up in; the tag body sees
    that environment's names.
    """

    def __init__(self, context: "RenderContext", method: Any, scope: Any):
        self.context = context
        self.method = method
        self.scope = scope

    def __call__(self, options: Any = None, caller: Optional[Callable] = None) -> str:
        with self.context.environment_scope(self.scope):
            return self.method.render(self.context, options, caller)


class Namespace:
    """Tags of an aliased taglib, reached as ``alias.tag`` from host code."""

    def __init__(self, context: "RenderContext", behavior: Any):
        self._context = context
        self._behavior = behavior

    def __getattr__(self, name: str) -> BoundTag:
        method = self._behavior.find_tag(name)
        if method is None and name.endswith("_"):
            method = self._behavior.find_tag(name[:-1])
        if method is None:
            raise AttributeError(name)
        return BoundTag(self._context, method, self._behavior)


class RenderContext:
    """State of one render: the stacks of ``this`` objects and scopes, and the parts seen.

    Attributes:
        environment: Environment the render started in (the page's).
        parts: DOM id -> PartRef for every part rendered so far.
    """

    def __init__(self, environment: "TemplateEnvironment", this: Any = None):
        self.environment = environment
        self.parts: Dict[str, PartRef] = {}
        self._objects: List[Any] = [this]
        self._scopes: List[Any] = [environment]
        self._namespaces: Dict[int, Dict[str, Any]] = {}

    @property
    def this(self) -> Any:
        return self._objects[-1]

    @property
    def scope(self) -> Any:
        """Environment whose names the template being rendered sees."""
        return self._scopes[-1]

    @property
    def caller_scope(self) -> Any:
        """Scope of whoever called the tag being rendered."""
        return self._scopes[-2] if len(self._scopes) > 1 else self._scopes[-1]

    @contextmanager
    def object_context(self, this: Any) -> Iterator[Any]:
        self._objects.append(this)
        try:
            yield this
        finally:
            self._objects.pop()

    @contextmanager
    def environment_scope(self, environment: Any) -> Iterator[Any]:
        self._scopes.append(environment)
        try:
            yield environment
        finally:
            self._scopes.pop()

    def scoped_this(self, options: Dict[str, Any]) -> Any:
        """Pop ``obj``/``attr`` out of ``options`` and work out the new ``this``."""
        this = options.pop("obj") if "obj" in options else self.this
        attr = options.pop("attr", None)
        if attr:
            this = resolve_field(this, attr)
        return this

    def namespace_for(self, environment: Any) -> Dict[str, Any]:
        """Names visible to templates rendered in ``environment``."""
        ns = self._namespaces.get(id(environment))
        if ns is None:
            ns = dict(environment.helper_items())
            for name in environment.tag_names():
                method = environment.find_tag(name)
                if method is not None:
                    ns[unreserve(name)] = BoundTag(self, method, environment)
            for alias, behavior in environment.namespace_items():
                ns[alias] = Namespace(self, behavior)
            ns.update(
                call_part=self.call_part,
                call_inner_tag=self.call_inner_tag,
                merge_options=merge_options,
                xattrs=xattrs,
            )
            self._namespaces[id(environment)] = ns
        return ns

    @property
    def namespace(self) -> Dict[str, Any]:
        return self.namespace_for(self.scope)

    def render(self, template: Template, variables: Mapping[str, Any]) -> str:
        return template.render({**self.namespace, "this": self.this, **variables})

    def call_tag(self, name: str, options: Any = None, caller: Optional[Callable] = None) -> str:
        """Call a tag by name, looked up in the current scope."""
        method = self.scope.find_tag(name)
        if method is None:
            raise RenderError(f"undefined tag <{name}>")
        with self.environment_scope(self.scope):
            return method.render(self, options, caller)

    def call_part(self, dom_id: Any, part_name: str) -> str:
        """Render a part in place and remember it under ``dom_id``."""
        part = self.scope.find_part(part_name) or self.environment.find_part(part_name)
        if part is None:
            raise RenderError(f"undefined part '{part_name}'")
        self.parts[str(dom_id)] = PartRef(part_name, self.this)
        return part.render(self)

    def call_inner_tag(
        self,
        name: str,
        options: Any,
        scope_options: Any,
        inner: str,
        caller: Optional[Callable] = None,
    ) -> str:
        """Call ``name`` with options overridden from ``scope_options[inner]``.

        A ``tag`` key in the overriding mapping replaces the tag being called.
        """
        override = scope_options.get(inner) if isinstance(scope_options, Mapping) else None
        override = dict(override) if isinstance(override, Mapping) else {}
        target = override.pop("tag", None) or name
        return self.call_tag(target, merge_options(options, override), caller)
