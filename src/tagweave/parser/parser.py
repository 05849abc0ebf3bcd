"""Structural parser - turns placeholder-safe template text into a tree.

Built on the standard expat parser. The source may hold several top-level
elements, so it is wrapped in a synthetic ``<page>`` root on the same line
as the first character of the template.
"""

from __future__ import annotations

import re
from typing import Optional
from xml.parsers import expat

from tagweave.errors import CompilationError
from tagweave.parser.tree import ElementNode, Prolog, RawDataNode, TextNode

ROOT = "page"

# The external DTD reference lets undeclared entities (&nbsp; ...) through as
# skipped entities. Must stay on one line with the root start tag.
_WRAPPER_OPEN = f'<!DOCTYPE {ROOT} SYSTEM "tagweave:page"><{ROOT}>'
_WRAPPER_CLOSE = f"</{ROOT}>"

PROLOG = re.compile(r"\A\s*(?:<\?xml[^>]*\?>\s*)?(?:<!DOCTYPE[^>\[]*(?:\[[^\]]*\])?\s*>)?")

START_TAG = re.compile(
    rb"""<[^\s/>]+(?:\s+[^\s=/>]+\s*=\s*(?:"[^"]*"|'[^']*'))*\s*/?>"""
)


class StructuralParser:
    """Parse template markup into an :class:`ElementNode` tree."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def parse(self, src: str) -> ElementNode:
        """Parse ``src`` and return the synthetic root element.

        A leading XML declaration or DOCTYPE is kept as a raw prolog node so it
        is re-emitted untouched.

        Raises:
            CompilationError: If the markup is not well formed.
        """
        prolog = ""
        match = PROLOG.match(src)
        if match and match.group(0).strip():
            prolog = match.group(0)
            src = src[match.end() :]

        builder = _TreeBuilder(_WRAPPER_OPEN + src + _WRAPPER_CLOSE, prolog.count("\n"))
        try:
            root = builder.run()
        except expat.ExpatError as e:
            line = (e.lineno or 1) + prolog.count("\n")
            raise CompilationError(
                f"malformed markup: {expat.ErrorString(e.code)}", self.path, line
            ) from e

        if prolog:
            root.children.insert(0, Prolog(prolog, parent=root))
        return root


class _TreeBuilder:
    """Expat event handlers that assemble the tree."""

    def __init__(self, xmlsrc: str, line_offset: int = 0):
        self.xmlbytes = xmlsrc.encode("utf-8")
        self.line_offset = line_offset
        self.root: Optional[ElementNode] = None
        self.stack: list[ElementNode] = []
        self.cdata: Optional[list[str]] = None

        p = expat.ParserCreate()
        p.ordered_attributes = True
        p.StartElementHandler = self.start_element
        p.EndElementHandler = self.end_element
        p.StartCdataSectionHandler = self.start_cdata
        p.EndCdataSectionHandler = self.end_cdata
        p.DefaultHandler = self.default
        p.SkippedEntityHandler = self.skipped_entity
        self.parser = p

    def run(self) -> ElementNode:
        self.parser.Parse(self.xmlbytes, True)
        assert self.root is not None
        return self.root

    @property
    def line(self) -> int:
        return self.parser.CurrentLineNumber + self.line_offset

    def start_element(self, name: str, attrs: list[str]) -> None:
        offset = self.parser.CurrentByteIndex
        match = START_TAG.match(self.xmlbytes, offset)
        start_tag = match.group(0).decode("utf-8") if match else ""

        el = ElementNode(
            name=name,
            attributes=dict(zip(attrs[::2], attrs[1::2])),
            line=self.line,
            offset=offset,
            start_tag=start_tag,
        )
        if self.stack:
            self.stack[-1].append(el)
        else:
            self.root = el
        self.stack.append(el)

    def end_element(self, name: str) -> None:
        el = self.stack.pop()
        el.end_line = max(self.line, el.line + el.start_tag_newlines)

    def start_cdata(self) -> None:
        self.cdata = []

    def end_cdata(self) -> None:
        text = "".join(self.cdata or [])
        self.cdata = None
        if self.stack:
            self.stack[-1].append(RawDataNode(text))

    def default(self, data: str) -> None:
        if self.cdata is not None:
            self.cdata.append(data)
        elif self.stack:
            self._text(data)

    def skipped_entity(self, name: str, is_parameter_entity: bool) -> None:
        if self.stack and not is_parameter_entity:
            self._text(f"&{name};")

    def _text(self, data: str) -> None:
        parent = self.stack[-1]
        last = parent.children[-1] if parent.children else None
        if isinstance(last, TextNode):
            last.text += data
        else:
            parent.append(TextNode(data))
