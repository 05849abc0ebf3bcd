"""Compiler - transforms a template tree into host (Jinja) source.

Compilation of one template:
1. Auto-import the configured taglib chain
2. Swap scriptlets for placeholders and parse the markup
3. Walk the tree in document order, emitting host source and installing
   tag, part and page methods into the template's environment
4. Restore scriptlets and compile the page body

Generated host source keeps every element on the line it was written on, so
runtime errors point into the template file.
"""

from __future__ import annotations

import importlib
import logging
import re
from typing import Iterable, List, NoReturn, Optional, Tuple

from tagweave.compiler.attributes import (
    AttributeSyntaxError,
    attribute_to_expression,
    build_options,
    is_code_attribute,
    options_to_source,
    string_literal,
)
from tagweave.compiler.spec import (
    RESERVED_ATTRS,
    CompiledTemplate,
    TagDefinition,
    TagRegistry,
    TemplateSource,
)
from tagweave.config import CompilerSettings
from tagweave.errors import CompilationError
from tagweave.parser import (
    ElementNode,
    Prolog,
    RawDataNode,
    ScriptletTable,
    StructuralParser,
    TextNode,
    contains_placeholder,
)
from tagweave.runtime.context import PartMethod, TagMethod
from tagweave.runtime.environment import ModuleBehavior
from tagweave.runtime.host import compile_host, padding, unreserve

log = logging.getLogger(__name__)

NAME = r"[a-zA-Z_][a-zA-Z0-9_]*"
NAME_RE = re.compile(rf"^{NAME}$")
DOTTED_NAME_RE = re.compile(rf"^{NAME}(\.{NAME})*$")
ATTRS_RE = re.compile(rf"^\s*{NAME}(\s*,\s*{NAME})*\s*$")

# Attributes that steer a tag call instead of becoming options.
CONTROL_ATTRS = frozenset({"xattrs", "inner", "part_id"})


def _attribute_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"\s*(?<![\w:.-]){re.escape(name)}\s*=\s*(\"[^\"]*\"|'[^']*')")


def _sub_attribute(start_tag: str, name: str, replacement: str) -> str:
    """Replace one attribute in a start tag, keeping the newlines it spanned."""

    def repl(match: re.Match[str]) -> str:
        return replacement + "\n" * match.group(0).count("\n")

    return _attribute_pattern(name).sub(repl, start_tag, count=1)


class TemplateCompiler:
    """Compiles one TemplateSource into methods on its environment."""

    def __init__(
        self,
        source: TemplateSource,
        resolver=None,
        settings: Optional[CompilerSettings] = None,
    ):
        """Initialize the compiler.

        Args:
            source: Template text, its path and the environment to install into.
            resolver: TaglibResolver used for ``<taglib src=...>`` and auto-imports.
                Without one, taglib imports are a compilation error.
            settings: Compiler settings. Defaults to the resolver's settings.
        """
        self.source = source
        self.environment = source.environment
        self.template_path = source.path
        self.resolver = resolver
        self.settings = settings or (resolver.settings if resolver is not None else CompilerSettings())
        self.static_tags = self.settings.static_tags
        self.tags = TagRegistry()
        self.scriptlets = ScriptletTable(self.template_path)

        self._root: Optional[ElementNode] = None
        self._last_element: Optional[ElementNode] = None
        self._param_count = 0
        self._tag_sources: dict[str, str] = {}
        self._part_sources: dict[str, str] = {}

    def compile(self, local_names: Iterable[str] = (), auto_taglibs: bool = True) -> CompiledTemplate:
        """Compile the template and install everything into its environment.

        Args:
            local_names: Names the page body may read from local assigns.
            auto_taglibs: Import the configured taglib chain first.

        Returns:
            CompiledTemplate describing what was generated.

        Raises:
            CompilationError: If the template violates the language rules.
            TaglibNotFoundError: If an imported taglib cannot be loaded.
        """
        log.debug(f"compiling {self.template_path}")
        if auto_taglibs:
            self._import_auto_taglibs()

        host_src = self.process_src()
        local_names = tuple(local_names)
        if not self.source.is_taglib:
            template = compile_host(host_src, self.template_path)
            self.environment.install_render_page(template, local_names)

        self.environment.tag_defs = self.tags.attrs_by_name()
        return CompiledTemplate(
            path=self.template_path,
            source=host_src,
            tags=self.tags.attrs_by_name(),
            tag_sources=dict(self._tag_sources),
            part_sources=dict(self._part_sources),
            local_names=local_names,
            environment=self.environment,
        )

    def process_src(self) -> str:
        """Scriptlet extraction, parse and tree walk. Returns the page body source."""
        src = self.scriptlets.extract(self.source.src)
        self._root = StructuralParser(self.template_path).parse(src)
        return self.scriptlets.restore(self.children_to_host(self._root))

    # -- imports -----------------------------------------------------------

    def _import_auto_taglibs(self) -> None:
        chain = self.settings.auto_taglibs
        if not chain or self.resolver is None:
            return

        prefix = self.settings.app_prefix
        in_app = self.template_path == prefix or self.template_path.startswith(prefix + "/")
        if not in_app:
            self.import_taglib(chain[-1])
            return

        expanded = [self.resolver.expand_path(ref, self.template_path) for ref in chain]
        if self.template_path not in expanded:
            self.import_taglib(chain[0])
            return
        index = expanded.index(self.template_path)
        if index + 1 < len(chain):
            self.import_taglib(chain[index + 1])

    def import_taglib(self, ref: str, alias: Optional[str] = None) -> None:
        if self.resolver is None:
            self.fail(f"cannot import taglib '{ref}' without a resolver")
        path = self.resolver.expand_path(ref, self.template_path)
        if path == self.template_path:
            return
        if self.resolver.cache.is_compiling(path):
            self.fail(f"circular taglib import: {path}")

        log.info(f"import taglib: {path}" + (f" as {alias}" if alias else ""))
        taglib = self.resolver.load(path)
        self.tags.merge(taglib.import_into(self.environment, alias))

    def import_module(self, module_name: str, alias: Optional[str] = None) -> None:
        if alias is not None:
            self.fail("'as' is not allowed when importing a module")
        log.info(f"import module: {module_name}")
        behavior = ModuleBehavior(importlib.import_module(module_name))
        self.environment.adopt(behavior)
        self.tags.merge(behavior.tag_defs)

    # -- tree walk -----------------------------------------------------------

    def children_to_host(self, el: ElementNode) -> str:
        return "".join(self.node_to_host(node) for node in list(el.children))

    def node_to_host(self, node) -> str:
        if isinstance(node, ElementNode):
            return self.element_to_host(node)
        if isinstance(node, RawDataNode):
            return f"<![CDATA[{node.text}]]>"
        if isinstance(node, (TextNode, Prolog)):
            return node.text
        raise TypeError(f"unexpected node {node!r}")

    def element_to_host(self, el: ElementNode) -> str:
        if el.is_param:
            self.fail(f"badly placed parameter tag <{el.name}>", el)
        self._last_element = el

        if el.name == "taglib":
            self.taglib_element(el)
            return padding(el.span_newlines)
        if el.name == "def":
            return self.def_element(el)
        if el.name == "tagbody":
            return self.tagbody_element(el)
        if el.name in self.tags or el.name not in self.static_tags:
            return self.tag_call(el)
        return self.html_element_to_host(el)

    # -- <taglib> ------------------------------------------------------------

    def taglib_element(self, el: ElementNode) -> None:
        self.require_toplevel(el)
        self.require_attribute(el, "as", NAME_RE, optional=True)
        alias = el.get("as")
        if el.get("src") is not None:
            self.import_taglib(el.get("src"), alias)
        elif el.get("module") is not None:
            self.import_module(el.get("module"), alias)
        else:
            self.fail("<taglib> needs a src or module attribute", el)

    # -- <def> ---------------------------------------------------------------

    def def_element(self, el: ElementNode) -> str:
        self.require_toplevel(el)
        self.require_attribute(el, "tag", NAME_RE)
        self.require_attribute(el, "attrs", ATTRS_RE, optional=True)
        self.require_attribute(el, "alias_of", NAME_RE, optional=True)
        self.require_attribute(el, "alias_current", NAME_RE, optional=True)

        name = el.get("tag")
        alias_of = el.get("alias_of")
        alias_current = el.get("alias_current")
        if alias_of and alias_current:
            self.fail("def cannot have both alias_of and alias_current", el)
        if alias_of and len(el) > 0:
            self.fail("def with alias_of must be empty", el)

        if alias_of:
            self.alias_tag(el, alias_of, name)
            return padding(el.span_newlines)
        if alias_current:
            self.alias_tag(el, name, alias_current)

        attrs = [a.strip() for a in el.get("attrs").split(",")] if el.get("attrs") else []
        invalid = [a for a in attrs if a in RESERVED_ATTRS]
        if invalid:
            self.fail(f"invalid attrs in def: {', '.join(invalid)}", el)
        duplicates = sorted({a for a in attrs if attrs.count(a) > 1})
        if duplicates:
            self.fail(f"duplicate attrs in def: {', '.join(duplicates)}", el)

        tag = self.tags.define(TagDefinition(name, tuple(attrs)))
        self.create_tag_method(el, tag)
        return padding(el.span_newlines)

    def alias_tag(self, el: ElementNode, old_name: str, new_name: str) -> None:
        old_tag = self.tags.get(old_name)
        if old_tag is None:
            self.fail(f"cannot alias undefined tag '{old_name}'", el)
        self.tags.define(old_tag.alias(new_name))
        try:
            self.environment.alias_tag(new_name, old_name)
        except KeyError:
            self.fail(f"tag '{old_name}' has no method to alias", el)

    def create_tag_method(self, el: ElementNode, tag: TagDefinition) -> None:
        body = self.scriptlets.restore(self.children_to_host(el))
        src = padding(el.line - 1 + el.start_tag_newlines) + body
        template = compile_host(src, self.template_path)
        self.environment.install_tag(tag.name, TagMethod(tag, template))
        self._tag_sources[tag.name] = src
        log.debug(f"defined tag <{tag.name}> attrs={list(tag.attrs)}")

    # -- <tagbody> -----------------------------------------------------------

    def tagbody_element(self, el: ElementNode) -> str:
        if el.find_ancestor(lambda e: e.name == "def") is None:
            self.fail("<tagbody> can only appear inside a <def>", el)
        if el.find_ancestor(lambda e: "part_id" in e.attributes) is not None:
            self.fail("<tagbody> cannot appear inside a part", el)

        if el.get("obj") is not None:
            args = f"obj={self.attribute(el, el.get('obj'))}"
        elif el.get("attr") is not None:
            args = f"attr={self.attribute(el, el.get('attr'))}"
        else:
            args = ""
        default = self.attribute(el, el.get("else"))
        newlines = "\n" * el.span_newlines
        return f"<%= tagbody.call({args}) if tagbody else {default}{newlines} %>"

    # -- tag calls -----------------------------------------------------------

    def tag_call(self, el: ElementNode) -> str:
        self.require_attribute(el, "inner", NAME_RE, optional=True)
        self.require_attribute(el, "part_id", NAME_RE, optional=True)
        name = self.tag_method_name(el)
        empty = len(el) == 0

        params = self.param_elements(el)
        options = self.tag_options(el, params)
        inner = el.get("inner")
        if inner is not None:
            call = f"call_inner_tag({string_literal(el.name)}, {options}, options, {string_literal(inner)})"
        else:
            call = f"{name}({options})"

        newlines = "\n" * el.start_tag_newlines
        prelude = "".join(prelude for _, _, prelude in params)
        if prelude:
            # start tag lines come before the parameter bodies
            prelude = padding(el.start_tag_newlines) + prelude
            newlines = ""
        if empty:
            body = f"<%= {call}{newlines} %>"
        else:
            body = f"<% call(this) {call}{newlines} %>{self.children_to_host(el)}<% endcall %>"

        if el.get("part_id") is None:
            return prelude + body
        dom_id = self.dom_id_expression(el)
        part = self.part_element(el, prelude + body, el.line)
        return f'<span id="<%= {dom_id} %>">{part}</span>'

    def tag_method_name(self, el: ElementNode) -> str:
        if not DOTTED_NAME_RE.match(el.name):
            self.fail(f"invalid tag name <{el.name}>", el)
        return ".".join(unreserve(segment) for segment in el.name.split("."))

    def param_elements(self, el: ElementNode) -> List[Tuple[str, str, str]]:
        """Detach parameter children of ``el``.

        Returns:
            (option name, host expression, host source to emit before the call)
            for each parameter, in document order.
        """
        params: List[Tuple[str, str, str]] = []
        seen: set[str] = set()
        for child in list(el.elements):
            if not child.is_param:
                continue
            el.remove(child)
            self._last_element = child
            name = child.param_name
            if not DOTTED_NAME_RE.match(name):
                self.fail(f"invalid parameter tag name <{child.name}>", child)
            if name in seen:
                self.fail(f"duplicate parameter tag <{child.name}>", child)
            seen.add(name)

            if len(child) == 0:
                items = [(k, self.attribute(child, v)) for k, v in child.attributes.items()]
                value = self.options_source(child, items)
                prelude = padding(child.span_newlines)
            else:
                self._param_count += 1
                value = f"_param{self._param_count}_{name.replace('.', '_')}"
                newlines = "\n" * child.start_tag_newlines
                children = self.children_to_host(child)
                prelude = f"<% set {value}{newlines} %>{children}<% endset %>"
            params.append((name, value, prelude))
        self._last_element = el
        return params

    def tag_options(self, el: ElementNode, params: List[Tuple[str, str, str]]) -> str:
        clashes = [name for name, _, _ in params if name in el.attributes]
        if clashes:
            self.fail(f"duplicate attribute/parameter-tag {', '.join(clashes)}", el)

        items = [
            (name, self.attribute(el, value))
            for name, value in el.attributes.items()
            if name not in CONTROL_ATTRS
        ]
        items.extend((name, value) for name, value, _ in params)
        options = self.options_source(el, items)

        xattrs = el.get("xattrs")
        if xattrs is None:
            return options
        return f"merge_options({options}, {self.xattrs_argument(el, xattrs)})"

    def options_source(self, el: ElementNode, items: List[Tuple[str, str]]) -> str:
        try:
            return options_to_source(build_options(items))
        except AttributeSyntaxError as e:
            self.fail(str(e), el)

    def xattrs_argument(self, el: ElementNode, value: str) -> str:
        if not value.strip():
            return "options"
        if is_code_attribute(value):
            return f"({value[1:]})"
        self.fail(f"invalid xattrs value '{value}' (use '#expr' or leave it empty)", el)

    # -- parts ---------------------------------------------------------------

    def part_element(self, el: ElementNode, content: str, first_line: int) -> str:
        """Compile ``content`` into a part and return the host code that calls it."""
        self.require_attribute(el, "part_id", NAME_RE)
        if el.find_ancestor(lambda e: "part_id" in e.attributes) is not None:
            self.fail("parts cannot be nested", el)
        part_name = el.get("part_id")
        if part_name in self._part_sources:
            self.fail(f"duplicate part '{part_name}'", el)

        src = padding(first_line - 1) + self.scriptlets.restore(content)
        template = compile_host(src, self.template_path)
        self.environment.install_part(part_name, PartMethod(part_name, template))
        self._part_sources[part_name] = src
        log.debug(f"defined part '{part_name}'")

        dom_id = self.dom_id_expression(el)
        newlines = "\n" * content.count("\n")
        return f"<%= call_part({dom_id}, {string_literal(part_name)}){newlines} %>"

    def dom_id_expression(self, el: ElementNode) -> str:
        return self.attribute(el, el.get("id") or el.get("part_id"))

    # -- static markup -------------------------------------------------------

    def html_element_to_host(self, el: ElementNode) -> str:
        start_tag = el.start_tag
        xattrs = el.get("xattrs")
        if xattrs is not None:
            args = self.xattrs_argument(el, xattrs)
            class_name = el.get("class")
            if class_name is not None:
                if "'" in class_name or contains_placeholder(class_name):
                    self.fail(f"invalid class attribute with xattrs: '{class_name}'", el)
                args += f", {string_literal(class_name)}"
                start_tag = _sub_attribute(start_tag, "class", "")
            start_tag = _sub_attribute(start_tag, "xattrs", f"<%= xattrs({args}) %>")

        part_id = el.get("part_id")
        if part_id is None:
            if start_tag.endswith("/>"):
                return start_tag
            return start_tag + self.children_to_host(el) + f"</{el.name}>"

        if start_tag.endswith("/>"):
            start_tag = start_tag[:-2].rstrip() + ">"
        if el.get("id") is not None:
            dom_id = self.dom_id_expression(el)
            start_tag = _sub_attribute(start_tag, "part_id", "")
            start_tag = _sub_attribute(start_tag, "id", f" id='<%= {dom_id} %>'")
        else:
            start_tag = re.sub(r"(?<![\w:.-])part_id(\s*=)", r"id\1", start_tag, count=1)

        content = self.children_to_host(el)
        part = self.part_element(el, content, el.line + el.start_tag_newlines)
        return start_tag + part + f"</{el.name}>"

    # -- checks and errors ---------------------------------------------------

    def attribute(self, el: ElementNode, value: Optional[str]) -> str:
        try:
            return attribute_to_expression(value)
        except AttributeSyntaxError as e:
            self.fail(str(e), el)

    def require_toplevel(self, el: ElementNode) -> None:
        if el.parent is not self._root:
            self.fail(f"<{el.name}> can only be at the top level", el)

    def require_attribute(
        self, el: ElementNode, name: str, pattern: re.Pattern[str], optional: bool = False
    ) -> None:
        value = el.get(name)
        if value is not None:
            if not pattern.match(value):
                self.fail(f"invalid {name}=\"{value}\" attribute on <{el.name}>", el)
        elif not optional:
            self.fail(f"missing {name} attribute on <{el.name}>", el)

    def fail(self, message: str, el: Optional[ElementNode] = None) -> NoReturn:
        """Raise a CompilationError located at ``el`` (or the last element seen)."""
        el = el if el is not None else self._last_element
        raise CompilationError(message, self.template_path, el.line if el is not None else None)
