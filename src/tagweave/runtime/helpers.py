"""Helpers available to compiled templates, and the decorators Python taglibs use.

A Python module becomes a taglib by decorating functions:

    from tagweave.runtime import helper, tag

    @tag(attrs=("label",))
    def badge(context, options, tagbody):
        return f"<b>{options['label']}</b>"

    @helper
    def shout(text):
        return text.upper()

Tag functions receive the render context, the full options mapping and the
tag body (or None when the call had no children).
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from markupsafe import escape

from tagweave.compiler.spec import TagDefinition

TAG_MARKER = "__tagweave_tag__"
HELPER_MARKER = "__tagweave_helper__"


def tag(name: Optional[str] = None, attrs: Iterable[str] = ()) -> Callable:
    """Mark a function as a tag. ``name`` defaults to the function name."""

    def decorator(fn: Callable) -> Callable:
        setattr(fn, TAG_MARKER, TagDefinition(name or fn.__name__, tuple(attrs)))
        return fn

    return decorator


def helper(fn: Callable) -> Callable:
    """Mark a function as a helper callable by name from templates."""
    setattr(fn, HELPER_MARKER, True)
    return fn


def merge_options(options: Any, extra: Any) -> dict:
    """Literal options overlaid with a forwarded mapping (the mapping wins)."""
    merged = dict(options) if isinstance(options, Mapping) else {}
    if isinstance(extra, Mapping):
        merged.update(extra)
    return merged


def xattrs(attributes: Any, class_name: Optional[str] = None) -> str:
    """Render a mapping as markup attributes: `` a="1" b="2"``.

    ``class_name`` is combined with any ``class`` entry of the mapping. None
    and False values are left out, True renders as a bare attribute name.
    """
    attrs = dict(attributes) if isinstance(attributes, Mapping) else {}
    if class_name:
        existing = attrs.get("class")
        attrs["class"] = f"{class_name} {existing}" if existing else class_name

    parts = []
    for key, value in attrs.items():
        if value is None or value is False or isinstance(value, Mapping):
            continue
        if value is True:
            parts.append(f" {key}")
        else:
            parts.append(f' {key}="{escape(value)}"')
    return "".join(parts)


def resolve_field(obj: Any, name: str) -> Any:
    """``obj[name]`` for mappings, ``obj.name`` otherwise, None when missing."""
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)
