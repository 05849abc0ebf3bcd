"""Tests for the code generator: generated host source and compile errors."""

import pytest

from tagweave import CompilationError


@pytest.fixture
def compile_page(make_engine):
    def _compile(src, path="page.weave"):
        return make_engine().compile_string(src, path)

    return _compile


def compile_error(compile_page, src):
    with pytest.raises(CompilationError) as exc:
        compile_page(src)
    return exc.value


# =============================================================================
# Generated source
# =============================================================================


class TestGeneratedSource:
    def test_def_emits_nothing_and_call_is_an_expression(self, compile_page):
        """A def only contributes a method; an empty call prints its result."""
        compiled = compile_page('<def tag="greet" attrs="name">Hello <%= name %>!</def>\n<greet name="Bob"/>')

        assert compiled.source == '\n<%= greet({"name": "Bob"}) %>'
        assert compiled.tag_sources["greet"] == "Hello <%= name %>!"
        assert compiled.tags == {"greet": ("name",)}

    def test_static_markup_passes_through(self, compile_page):
        """Plain HTML is emitted exactly as written."""
        src = '<div class="x">\n  <p>hi &amp; bye</p><br/>\n</div>'
        assert compile_page(src).source == src

    def test_call_with_children_captures_body(self, compile_page):
        compiled = compile_page("<def tag=\"box\"><tagbody/></def><box>hi</box>")

        assert compiled.source == "<% call(this) box({}) %>hi<% endcall %>"
        assert compiled.tag_sources["box"] == "<%= tagbody.call() if tagbody else none %>"

    def test_tagbody_with_obj_and_else(self, compile_page):
        compiled = compile_page('<def tag="t"><tagbody obj="#this.child" else="empty"/></def>')
        assert compiled.tag_sources["t"] == '<%= tagbody.call(obj=(this.child)) if tagbody else "empty" %>'

    def test_childless_parameter_is_a_mapping(self, compile_page):
        compiled = compile_page('<def tag="card"/><card><:title text="T"/></card>')
        assert compiled.source == '<% call(this) card({"title": {"text": "T"}}) %><% endcall %>'

    def test_parameter_with_children_is_captured_first(self, compile_page):
        compiled = compile_page('<def tag="card"/><card><:title>Hi</:title></card>')
        assert compiled.source == (
            "<% set _param1_title %>Hi<% endset %>"
            '<% call(this) card({"title": _param1_title}) %><% endcall %>'
        )

    def test_control_attributes_are_not_options(self, compile_page):
        compiled = compile_page('<def tag="item"/><def tag="lst"><item inner="entry" a="1"/></def>')
        assert compiled.tag_sources["lst"] == (
            '<%= call_inner_tag("item", {"a": "1"}, options, "entry") %>'
        )

    def test_xattrs_on_tag_call_merges_options(self, compile_page):
        compiled = compile_page('<def tag="t"/><def tag="u"><t xattrs="" a="1"/><t xattrs="#extra"/></def>')
        assert compiled.tag_sources["u"] == (
            '<%= t(merge_options({"a": "1"}, options)) %><%= t(merge_options({}, (extra))) %>'
        )

    def test_xattrs_on_markup_with_class(self, compile_page):
        compiled = compile_page('<def tag="btn"><button class="btn" xattrs=""/></def>')
        assert compiled.tag_sources["btn"] == '<button<%= xattrs(options, "btn") %>/>'

    def test_xattrs_on_markup_keeps_other_attributes(self, compile_page):
        compiled = compile_page('<def tag="b"><a xattrs="" href="/">x</a></def>')
        assert compiled.tag_sources["b"] == '<a<%= xattrs(options) %> href="/">x</a>'

    def test_def_below_first_line_is_padded_with_a_comment(self, compile_page):
        compiled = compile_page('<p/>\n\n<def tag="t">x</def>')
        assert compiled.tag_sources["t"] == "<%#\n\n%>x"

    def test_parameter_body_keeps_its_lines(self, compile_page):
        """Newlines of a multi-line call tag come before the parameter bodies."""
        src = '<def tag="card" attrs="title"><tagbody/></def><card\n  ><:title>\n<b/>\n</:title></card>'
        compiled = compile_page(src)

        assert compiled.source.split("\n")[2] == "<b/>"
        assert compiled.source.count("\n") == src.count("\n")

    def test_part_on_markup_element(self, compile_page):
        compiled = compile_page('<div part_id="cart">x</div>')

        assert compiled.source == '<div id="cart"><%= call_part("cart", "cart") %></div>'
        assert compiled.part_sources == {"cart": "x"}

    def test_part_with_explicit_id(self, compile_page):
        compiled = compile_page("<li id=\"#'row' ~ n\" part_id=\"row\">x</li>")
        assert compiled.source == (
            "<li id='<%= ('row' ~ n) %>'><%= call_part(('row' ~ n), \"row\") %></li>"
        )

    def test_part_on_tag_call_is_wrapped_in_span(self, compile_page):
        compiled = compile_page('<def tag="greet"/><greet part_id="g"/>')

        assert compiled.source == '<span id="<%= "g" %>"><%= call_part("g", "g") %></span>'
        assert compiled.part_sources["g"] == "<%= greet({}) %>"

    def test_self_closing_part_element_is_opened(self, compile_page):
        compiled = compile_page('<div part_id="p"/>')
        assert compiled.source == '<div id="p"><%= call_part("p", "p") %></div>'

    def test_reserved_tag_names_are_unreserved(self, compile_page):
        compiled = compile_page('<def tag="if">x</def><if/>')
        assert compiled.source == "<%= if_({}) %>"

    def test_line_count_is_preserved(self, compile_page):
        """Generated source has a line for every template line."""
        src = (
            '<def tag="box"\n'
            '     attrs="a">\n'
            "  <p><%= a %></p>\n"
            "</def>\n"
            '<box a="1">\n'
            "  <:extra>\n"
            "    x\n"
            "  </:extra>\n"
            "  body\n"
            "</box>\n"
        )
        compiled = compile_page(src)

        assert compiled.source.count("\n") == src.count("\n")
        assert compiled.tag_sources["box"].count("\n") == 3

    def test_def_body_lines_match_template(self, compile_page):
        """A def body starts on the line it starts on in the template."""
        compiled = compile_page('<p/>\n\n<def tag="t">\n  <b/>\n</def>')
        lines = compiled.tag_sources["t"].split("\n")
        assert lines[3] == "  <b/>"


# =============================================================================
# Compile errors
# =============================================================================


class TestCompileErrors:
    def test_error_carries_path_and_line(self, compile_page):
        err = compile_error(compile_page, '<p/>\n<def tag="x" attrs="this">y</def>')

        assert err.path == "page.weave"
        assert err.line == 2
        assert "invalid attrs in def: this" in str(err)
        assert str(err).endswith("-- at page.weave:2")

    def test_duplicate_def_attrs(self, compile_page):
        err = compile_error(compile_page, '<def tag="x" attrs="a, b, a"/>')
        assert "duplicate attrs in def: a" in err.message

    def test_def_needs_a_tag_name(self, compile_page):
        err = compile_error(compile_page, '<def attrs="a"/>')
        assert "missing tag attribute" in err.message

    def test_def_tag_name_must_be_an_identifier(self, compile_page):
        err = compile_error(compile_page, '<def tag="my-tag"/>')
        assert 'invalid tag="my-tag"' in err.message

    def test_def_must_be_top_level(self, compile_page):
        err = compile_error(compile_page, '<div>\n<def tag="x"/></div>')
        assert "top level" in err.message
        assert err.line == 2

    def test_taglib_must_be_top_level(self, compile_page):
        err = compile_error(compile_page, '<div><taglib src="x"/></div>')
        assert "top level" in err.message

    def test_taglib_needs_src_or_module(self, compile_page):
        err = compile_error(compile_page, "<taglib/>")
        assert "src or module" in err.message

    def test_alias_of_with_body(self, compile_page):
        err = compile_error(compile_page, '<def tag="a">x</def><def tag="b" alias_of="a">y</def>')
        assert "must be empty" in err.message

    def test_both_alias_modes(self, compile_page):
        err = compile_error(compile_page, '<def tag="a"/><def tag="b" alias_of="a" alias_current="c"/>')
        assert "both alias_of and alias_current" in err.message

    def test_alias_of_undefined_tag(self, compile_page):
        err = compile_error(compile_page, '<def tag="b" alias_of="nope"/>')
        assert "undefined tag 'nope'" in err.message

    def test_badly_placed_parameter(self, compile_page):
        err = compile_error(compile_page, "<div>\n  <:x/>\n</div>")
        assert "badly placed parameter tag <:x>" in err.message
        assert err.line == 2

    def test_duplicate_parameter(self, compile_page):
        err = compile_error(compile_page, '<def tag="c"/><c><:a/><:a/></c>')
        assert "duplicate parameter tag <:a>" in err.message

    def test_parameter_attribute_collision(self, compile_page):
        err = compile_error(compile_page, '<def tag="c"/><c a="1"><:a/></c>')
        assert "duplicate attribute/parameter-tag a" in err.message

    def test_dotted_option_conflict(self, compile_page):
        err = compile_error(compile_page, '<def tag="c"/><c a="1" a.b="2"/>')
        assert "inner-attribute conflict for a.b" in err.message

    def test_tagbody_outside_def(self, compile_page):
        err = compile_error(compile_page, "<p>\n<tagbody/></p>")
        assert "inside a <def>" in err.message
        assert err.line == 2

    def test_tagbody_inside_part(self, compile_page):
        err = compile_error(compile_page, '<def tag="x"><div part_id="p"><tagbody/></div></def>')
        assert "inside a part" in err.message

    def test_invalid_tag_name(self, compile_page):
        err = compile_error(compile_page, "<my-widget/>")
        assert "invalid tag name <my-widget>" in err.message

    def test_scriptlet_in_tag_call_attribute(self, compile_page):
        err = compile_error(compile_page, '<def tag="g"/>\n<g name="<%= x %>"/>')
        assert "scriptlet in attribute" in err.message
        assert err.line == 2

    def test_both_quote_characters(self, compile_page):
        err = compile_error(compile_page, '<def tag="g"/><g name="it\'s &quot;x&quot;"/>')
        assert "invalid quote(s)" in err.message

    def test_invalid_xattrs(self, compile_page):
        err = compile_error(compile_page, '<def tag="g"/><g xattrs="foo"/>')
        assert "invalid xattrs" in err.message

    def test_invalid_class_with_xattrs(self, compile_page):
        err = compile_error(compile_page, "<div class=\"a'b\" xattrs=\"\"/>")
        assert "invalid class attribute with xattrs" in err.message

    def test_nested_parts(self, compile_page):
        err = compile_error(compile_page, '<div part_id="a">\n<span part_id="b"/></div>')
        assert "parts cannot be nested" in err.message
        assert err.line == 2

    def test_duplicate_part_names(self, compile_page):
        err = compile_error(compile_page, '<div part_id="a"/><p part_id="a"/>')
        assert "duplicate part 'a'" in err.message

    def test_invalid_part_id(self, compile_page):
        err = compile_error(compile_page, '<div part_id="a-b"/>')
        assert 'invalid part_id="a-b"' in err.message

    def test_module_import_rejects_alias(self, compile_page):
        err = compile_error(compile_page, '<taglib module="os" as="x"/>')
        assert "'as' is not allowed" in err.message

    def test_host_syntax_error_in_page(self, compile_page):
        err = compile_error(compile_page, "<p>\n<%= foo( %>\n</p>")
        assert err.line == 2
        assert err.path == "page.weave"

    def test_host_syntax_error_in_def_body(self, compile_page):
        """Errors inside a def body report the template line."""
        err = compile_error(compile_page, '<def tag="a">\n  <p>\n    <%= foo( %>\n  </p>\n</def>')
        assert err.line == 3

    def test_error_after_multiline_scriptlet(self, compile_page):
        err = compile_error(compile_page, "<% set x = [\n  1,\n  2] %>\n<div>\n<:oops/></div>")
        assert err.line == 5
