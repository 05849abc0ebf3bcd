"""Compiler data model - tag definitions, the per-compile registry and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from tagweave.runtime.environment import TemplateEnvironment


RESERVED_ATTRS = frozenset({"obj", "attr", "this"})


@dataclass(frozen=True)
class TagDefinition:
    """A named tag and its declared attributes."""

    name: str
    attrs: Tuple[str, ...] = ()

    def alias(self, new_name: str) -> "TagDefinition":
        """A definition for ``new_name`` sharing this tag's attributes."""
        return TagDefinition(new_name, self.attrs)


class TagRegistry:
    """Name -> TagDefinition map for one compilation.

    Local definitions always win: ``define`` overwrites, ``merge`` only fills
    names that are not registered yet.
    """

    def __init__(self, tags: Optional[Mapping[str, TagDefinition]] = None):
        self._tags: Dict[str, TagDefinition] = dict(tags or {})

    def define(self, tag: TagDefinition) -> TagDefinition:
        self._tags[tag.name] = tag
        return tag

    def merge(self, tags: Mapping[str, TagDefinition]) -> None:
        """Add imported tags without overwriting existing entries."""
        for name, tag in tags.items():
            self._tags.setdefault(name, tag)

    def get(self, name: str) -> Optional[TagDefinition]:
        return self._tags.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def snapshot(self) -> Dict[str, TagDefinition]:
        return dict(self._tags)

    def attrs_by_name(self) -> Dict[str, Tuple[str, ...]]:
        """The name -> attrs view attached to environments for inspection."""
        return {name: tag.attrs for name, tag in self._tags.items()}


@dataclass
class TemplateSource:
    """One compilable unit: its text, its path and where methods get installed."""

    src: str
    path: str
    environment: "TemplateEnvironment"

    def __post_init__(self):
        self.src = self.src.replace("\r\n", "\n")

    @property
    def is_taglib(self) -> bool:
        return self.environment.is_taglib


@dataclass
class CompiledTemplate:
    """Result of compiling one template."""

    path: str
    source: str  # host source of the page render method (padding only for taglibs)
    tags: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    tag_sources: Dict[str, str] = field(default_factory=dict)  # tag name -> host source
    part_sources: Dict[str, str] = field(default_factory=dict)  # part name -> host source
    local_names: Tuple[str, ...] = ()
    environment: Optional["TemplateEnvironment"] = field(default=None, repr=False)
