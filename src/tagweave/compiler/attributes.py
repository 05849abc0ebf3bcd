"""Attribute-to-expression translation and options literals.

Values are turned into host (Jinja) expressions:

    name="Bob"      ->  "Bob"
    count="#n + 1"  ->  (n + 1)
    <absent>        ->  none
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from tagweave.parser.scriptlets import contains_placeholder

CODE_SIGIL = "#"
NULL = "none"


class AttributeSyntaxError(ValueError):
    """An attribute value that cannot be translated. Located by the caller."""

    pass


class OptionConflict(AttributeSyntaxError):
    """A dotted option path runs into a plain value (``a="x" a.b="y"``)."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"inner-attribute conflict for {name}")


def is_code_attribute(value: str) -> bool:
    return value.startswith(CODE_SIGIL)


def attribute_to_expression(value: Optional[str]) -> str:
    """Translate one attribute value into a host expression."""
    if contains_placeholder(value):
        raise AttributeSyntaxError(
            "scriptlet in attribute of a tag call (use a '#' code attribute)"
        )
    if value is None:
        return NULL
    if is_code_attribute(value):
        return f"({value[1:]})"
    return string_literal(value)


def string_literal(value: str) -> str:
    value = value.replace("\\", "\\\\")
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    raise AttributeSyntaxError("invalid quote(s) in attribute value")


def add_option(options: Dict[str, Any], names: List[str], value: str, full: str) -> None:
    """Store ``value`` under a dotted path, creating nested mappings on the way."""
    head, rest = names[0], names[1:]
    if not rest:
        if isinstance(options.get(head), dict):
            raise OptionConflict(full)
        options[head] = value
        return

    inner = options.get(head)
    if inner is None:
        inner = options[head] = {}
    elif not isinstance(inner, dict):
        raise OptionConflict(full)
    add_option(inner, rest, value, full)


def build_options(items: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """Build a nested options mapping from (dotted name, expression) pairs."""
    options: Dict[str, Any] = {}
    for name, expr in items:
        add_option(options, name.split("."), expr, name)
    return options


def options_to_source(options: Dict[str, Any]) -> str:
    """Render an options mapping as a host dict literal."""
    pairs = []
    for key, value in options.items():
        val = options_to_source(value) if isinstance(value, dict) else value
        pairs.append(f"{string_literal(key)}: {val}")
    return "{" + ", ".join(pairs) + "}"
