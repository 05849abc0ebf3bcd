"""Environments - where compiled tag, part and page methods get installed.

Every compiled template owns one environment. Importing a taglib adopts the
taglib's environment as a behavior: its tags become visible without being
copied, and local tags always shadow adopted ones. The most recently adopted
behavior wins among imports.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from jinja2 import Template

from tagweave.compiler.spec import TagDefinition
from tagweave.errors import RenderError
from tagweave.runtime.context import PartMethod, PythonTag, RenderContext, RenderedPage
from tagweave.runtime.helpers import HELPER_MARKER, TAG_MARKER

log = logging.getLogger(__name__)


class TemplateEnvironment:
    """Tag and part tables for one compiled template.

    Attributes:
        name: Template path, for logging.
        tags: Locally installed tag methods.
        parts: Locally installed part methods.
        behaviors: Adopted taglibs and Python modules, oldest first.
        namespaces: Alias -> behavior for aliased imports.
        tag_defs: Tag name -> declared attrs, set once compilation finishes.
    """

    is_taglib = False

    def __init__(self, name: str = "<template>"):
        self.name = name
        self.tags: Dict[str, Any] = {}
        self.parts: Dict[str, PartMethod] = {}
        self.behaviors: List[Any] = []
        self.namespaces: Dict[str, Any] = {}
        self.helpers: Dict[str, Callable] = {}
        self.tag_defs: Dict[str, Tuple[str, ...]] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def install_tag(self, name: str, method: Any) -> None:
        self.tags[name] = method

    def alias_tag(self, new_name: str, old_name: str) -> None:
        """Make ``new_name`` call whatever ``old_name`` calls right now."""
        method = self.find_tag(old_name)
        if method is None:
            raise KeyError(old_name)
        self.tags[new_name] = method

    def install_part(self, name: str, part: PartMethod) -> None:
        self.parts[name] = part

    def adopt(self, behavior: Any, alias: Optional[str] = None) -> bool:
        """Make ``behavior``'s tags visible here. Adopting twice is a no-op.

        Returns:
            True if the behavior was newly adopted.
        """
        if behavior is self:
            return False
        if alias is not None:
            if self.namespaces.get(alias) == behavior:
                return False
            self.namespaces[alias] = behavior
        else:
            if behavior in self.behaviors:
                return False
            self.behaviors.append(behavior)
        log.debug(f"{self.name}: adopted {behavior!r}" + (f" as {alias}" if alias else ""))
        return True

    def find_tag(self, name: str) -> Any:
        """Local tags first, then adopted behaviors, newest first."""
        method = self.tags.get(name)
        if method is not None:
            return method
        if "." in name:
            alias, rest = name.split(".", 1)
            behavior = self.namespaces.get(alias)
            return behavior.find_tag(rest) if behavior is not None else None
        for behavior in reversed(self.behaviors):
            method = behavior.find_tag(name)
            if method is not None:
                return method
        return None

    def part_owner(self, name: str) -> Optional["TemplateEnvironment"]:
        """Environment holding part ``name``: local parts, adopted behaviors
        newest first, then aliased imports."""
        if name in self.parts:
            return self
        for behavior in [*reversed(self.behaviors), *self.namespaces.values()]:
            owner = behavior.part_owner(name)
            if owner is not None:
                return owner
        return None

    def find_part(self, name: str) -> Optional[PartMethod]:
        owner = self.part_owner(name)
        return owner.parts[name] if owner is not None else None

    def tag_names(self) -> set:
        names = set(self.tags)
        for behavior in self.behaviors:
            names.update(behavior.tag_names())
        return names

    def helper_items(self) -> Dict[str, Callable]:
        items: Dict[str, Callable] = {}
        for behavior in self.behaviors:
            items.update(behavior.helper_items())
        items.update(self.helpers)
        return items

    def namespace_items(self) -> Iterable[Tuple[str, Any]]:
        return self.namespaces.items()


class TaglibEnvironment(TemplateEnvironment):
    """Environment of a taglib: tags only, never a page body."""

    is_taglib = True


class PageEnvironment(TemplateEnvironment):
    """Environment of a page template: tags, parts and the page body."""

    def __init__(self, name: str = "<template>"):
        super().__init__(name)
        self.page_template: Optional[Template] = None
        self.compiled_local_names: Tuple[str, ...] = ()

    def install_render_page(self, template: Template, local_names: Iterable[str] = ()) -> None:
        self.page_template = template
        self.compiled_local_names = tuple(local_names)

    def render_page(self, this: Any = None, local_assigns: Optional[Mapping[str, Any]] = None) -> RenderedPage:
        """Render the page body with ``this`` as the initial object.

        Only the local names the page was compiled with are bound; other keys
        of ``local_assigns`` are ignored.

        Raises:
            RenderError: If the page has not been compiled yet.
        """
        if self.page_template is None:
            raise RenderError(f"page {self.name} has no compiled body")
        assigns = local_assigns or {}
        variables = {name: assigns.get(name) for name in self.compiled_local_names}
        context = RenderContext(self, this)
        output = context.render(self.page_template, variables)
        return RenderedPage(output, dict(context.parts))

    def render_part(self, name: str, this: Any = None) -> str:
        """Render a single part on its own, e.g. to refresh it in place."""
        owner = self.part_owner(name)
        if owner is None:
            raise RenderError(f"undefined part '{name}'")
        context = RenderContext(self, this)
        with context.environment_scope(owner):
            return owner.parts[name].render(context)


class ModuleBehavior:
    """A Python module adopted as a taglib: its ``@tag`` and ``@helper`` functions."""

    def __init__(self, module: ModuleType):
        self.module = module
        self.tags: Dict[str, PythonTag] = {}
        self.tag_defs: Dict[str, TagDefinition] = {}
        self.helpers: Dict[str, Callable] = {}
        for attr_name, value in vars(module).items():
            definition = getattr(value, TAG_MARKER, None)
            if isinstance(definition, TagDefinition):
                self.tags[definition.name] = PythonTag(definition, value)
                self.tag_defs[definition.name] = definition
            if getattr(value, HELPER_MARKER, False):
                self.helpers[attr_name] = value

    def __repr__(self) -> str:
        return f"ModuleBehavior({self.module.__name__!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ModuleBehavior) and other.module is self.module

    def __hash__(self) -> int:
        return hash(self.module)

    def find_tag(self, name: str) -> Optional[PythonTag]:
        return self.tags.get(name)

    def find_part(self, name: str) -> None:
        return None

    def part_owner(self, name: str) -> None:
        return None

    def tag_names(self) -> set:
        return set(self.tags)

    def helper_items(self) -> Dict[str, Callable]:
        return dict(self.helpers)
