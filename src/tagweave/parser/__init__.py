"""Template parsing - scriptlet extraction and the structural tree parser."""

from tagweave.parser.parser import StructuralParser
from tagweave.parser.scriptlets import ScriptletTable, contains_placeholder
from tagweave.parser.tree import ElementNode, Prolog, RawDataNode, TextNode

__all__ = [
    "StructuralParser",
    "ScriptletTable",
    "contains_placeholder",
    "ElementNode",
    "Prolog",
    "RawDataNode",
    "TextNode",
]
