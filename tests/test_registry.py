"""Tests for tag definitions and the per-compile registry."""

from tagweave.compiler.spec import TagDefinition, TagRegistry, TemplateSource
from tagweave.runtime import PageEnvironment, TaglibEnvironment


def test_define_overwrites():
    """A later local definition replaces an earlier one."""
    registry = TagRegistry()
    registry.define(TagDefinition("card", ("title",)))
    registry.define(TagDefinition("card", ("heading",)))
    assert registry.get("card").attrs == ("heading",)


def test_merge_never_overwrites():
    """Imported definitions only fill names that are free."""
    registry = TagRegistry()
    registry.define(TagDefinition("card", ("local",)))
    registry.merge({"card": TagDefinition("card", ("imported",)), "btn": TagDefinition("btn")})

    assert registry.get("card").attrs == ("local",)
    assert "btn" in registry
    assert len(registry) == 2


def test_alias_shares_attrs():
    tag = TagDefinition("card", ("title", "body"))
    alias = tag.alias("panel")
    assert alias.name == "panel"
    assert alias.attrs == tag.attrs


def test_attrs_by_name():
    registry = TagRegistry({"a": TagDefinition("a", ("x",))})
    assert registry.attrs_by_name() == {"a": ("x",)}


def test_template_source_normalizes_line_endings():
    source = TemplateSource("<a/>\r\n<b/>", "p.weave", PageEnvironment("p.weave"))
    assert source.src == "<a/>\n<b/>"
    assert not source.is_taglib


def test_template_source_knows_taglibs():
    source = TemplateSource("", "lib.weave", TaglibEnvironment("lib.weave"))
    assert source.is_taglib
