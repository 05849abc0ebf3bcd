"""Template tree nodes produced by the structural parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Union


PARAM_SIGIL = ":"


@dataclass(eq=False)
class TextNode:
    """Character data, kept exactly as written (entities unexpanded)."""

    text: str
    parent: Optional["ElementNode"] = field(default=None, repr=False)


@dataclass(eq=False)
class RawDataNode:
    """Contents of a CDATA section. Emitted verbatim, never re-escaped."""

    text: str
    parent: Optional["ElementNode"] = field(default=None, repr=False)


@dataclass(eq=False)
class Prolog:
    """XML declaration / DOCTYPE split off the front of the template."""

    text: str
    parent: Optional["ElementNode"] = field(default=None, repr=False)


@dataclass(eq=False)
class ElementNode:
    """An element with ordered attributes and children.

    ``line`` is the 1-based line of the opening tag, ``end_line`` the line the
    element closes on, and ``start_tag`` the opening tag exactly as written.
    """

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["Node"] = field(default_factory=list)
    parent: Optional["ElementNode"] = field(default=None, repr=False)
    line: int = 1
    end_line: int = 1
    offset: int = 0
    start_tag: str = ""

    def __len__(self) -> int:
        return len(self.children)

    def get(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    @property
    def is_param(self) -> bool:
        """Parameter elements are named with a leading sigil, e.g. ``<:title>``."""
        return self.name.startswith(PARAM_SIGIL)

    @property
    def param_name(self) -> str:
        return self.name[len(PARAM_SIGIL) :]

    @property
    def elements(self) -> Iterator["ElementNode"]:
        return (c for c in self.children if isinstance(c, ElementNode))

    @property
    def start_tag_newlines(self) -> int:
        return self.start_tag.count("\n")

    @property
    def span_newlines(self) -> int:
        """Newlines covered by the whole element, start tag to end tag."""
        return self.end_line - self.line

    def append(self, node: "Node") -> None:
        node.parent = self
        self.children.append(node)

    def remove(self, node: "Node") -> None:
        # parent link is kept: a detached parameter still nests inside its caller
        self.children.remove(node)

    def find_ancestor(
        self, predicate: Callable[["ElementNode"], bool]
    ) -> Optional["ElementNode"]:
        """Closest ancestor (excluding self and the synthetic root) matching ``predicate``."""
        el = self.parent
        while el is not None and el.parent is not None:
            if predicate(el):
                return el
            el = el.parent
        return None


Node = Union[TextNode, RawDataNode, Prolog, ElementNode]
