"""Scriptlet extraction.

The structural parser only understands markup, so every ``<% ... %>`` region
is swapped for an XML-safe placeholder before parsing and swapped back once
the host source has been generated. Placeholders keep the newlines of the
region they replace so element line numbers stay aligned with the file.
"""

from __future__ import annotations

import re

from tagweave.errors import CompilationError

MARKER = "[![SCRIPTLET"

SCRIPTLET = re.compile(r"<%(.*?)%>", re.DOTALL)
PLACEHOLDER = re.compile(r"\[!\[SCRIPTLET(\d+)\s*\]!\]")


def contains_placeholder(text: str | None) -> bool:
    """True if ``text`` still holds an unrestored scriptlet."""
    return text is not None and MARKER in text


def _line_at(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


class ScriptletTable:
    """Numbered scriptlets removed from one template source.

    Attributes:
        path: Template path, used for error reporting.
        scriptlets: Mapping of placeholder id to the raw script text.
    """

    def __init__(self, path: str | None = None):
        self.path = path
        self.scriptlets: dict[int, str] = {}

    def extract(self, src: str) -> str:
        """Replace every scriptlet in ``src`` with a numbered placeholder.

        Raises:
            CompilationError: On nested, unclosed or stray delimiters.
        """
        if MARKER in src:
            raise CompilationError(
                "template contains a reserved scriptlet marker",
                self.path,
                _line_at(src, src.index(MARKER)),
            )

        pieces: list[str] = []
        last = 0
        for match in SCRIPTLET.finditer(src):
            self._check_plain_text(src, last, match.start())
            body = match.group(1)
            if "<%" in body:
                raise CompilationError(
                    "nested scriptlet delimiters", self.path, _line_at(src, match.start())
                )
            pieces.append(src[last : match.start()])
            pieces.append(self._placeholder(body))
            last = match.end()

        self._check_plain_text(src, last, len(src))
        pieces.append(src[last:])
        return "".join(pieces)

    def restore(self, text: str) -> str:
        """Put the original scriptlets back in place of their placeholders."""

        def replace(match: re.Match[str]) -> str:
            return f"<%{self.scriptlets[int(match.group(1))]}%>"

        return PLACEHOLDER.sub(replace, text)

    def _placeholder(self, body: str) -> str:
        sid = len(self.scriptlets) + 1
        self.scriptlets[sid] = body
        newlines = "\n" * body.count("\n")
        return f"{MARKER}{sid}{newlines}]!]"

    def _check_plain_text(self, src: str, start: int, end: int) -> None:
        """Text between scriptlets must not hold a lone delimiter."""
        opening = src.find("<%", start, end)
        if opening != -1:
            raise CompilationError(
                "unclosed scriptlet delimiter '<%'", self.path, _line_at(src, opening)
            )
        closing = src.find("%>", start, end)
        if closing != -1:
            raise CompilationError(
                "unmatched scriptlet delimiter '%>'", self.path, _line_at(src, closing)
            )
