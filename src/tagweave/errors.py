"""Tagweave Exceptions

Custom exceptions raised while compiling and rendering templates.
"""

from __future__ import annotations


class TagweaveError(Exception):
    """Base exception for all tagweave errors."""

    pass


class CompilationError(TagweaveError):
    """Raised when a template violates the language rules.

    Carries the template path and the source line so tooling can point at
    the offending element.
    """

    def __init__(self, message: str, path: str | None = None, line: int | None = None):
        self.message = message
        self.path = path
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path is None and self.line is None:
            return self.message
        return f"{self.message} -- at {self.path or '<string>'}:{self.line or '?'}"


class TaglibNotFoundError(TagweaveError):
    """Raised by a loader when a taglib path does not resolve to a source."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Taglib not found: {path}")


class RenderError(TagweaveError):
    """Raised when a compiled template calls a tag or part that does not exist."""

    pass
