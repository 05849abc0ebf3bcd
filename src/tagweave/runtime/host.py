"""The host scripting environment - Jinja2 with ERB-style delimiters.

Compiled templates are Jinja source: scriptlets are ``<% stmt %>``,
``<%= expr %>`` and ``<%# comment %>``. This module owns the shared Jinja
``Environment`` and turns host source into ``Template`` objects, reporting
syntax errors against the original template path and line.
"""

from __future__ import annotations

import keyword
from functools import lru_cache
from typing import Any

from jinja2 import Environment, Template, TemplateSyntaxError

from tagweave.errors import CompilationError

BLOCK_START = "<%"
BLOCK_END = "%>"
VARIABLE_START = "<%="
VARIABLE_END = "%>"
COMMENT_START = "<%#"
COMMENT_END = "%>"

# Names a tag cannot be called by directly from host code.
RESERVED_NAMES = frozenset(
    {
        "and", "or", "not", "in", "is", "if", "else",
        "true", "false", "none", "True", "False", "None",
        "this", "options", "tagbody", "caller", "loop", "self",
        "varargs", "kwargs",
    }
)


def unreserve(name: str) -> str:
    """Map a tag name onto a name usable in host expressions (``if`` -> ``if_``)."""
    if name in RESERVED_NAMES or keyword.iskeyword(name):
        return f"{name}_"
    return name


def padding(newlines: int) -> str:
    """A host comment that outputs nothing but keeps ``newlines`` line breaks."""
    if newlines <= 0:
        return ""
    return COMMENT_START + "\n" * newlines + COMMENT_END


def _finalize(value: Any) -> Any:
    # print None as nothing, like an empty scriptlet
    return "" if value is None else value


@lru_cache(maxsize=None)
def get_host_environment() -> Environment:
    """Create the Jinja2 Environment compiled templates run in.

    Returns:
        Configured Jinja2 Environment (shared, thread-safe for compile/render).
    """
    return Environment(
        block_start_string=BLOCK_START,
        block_end_string=BLOCK_END,
        variable_start_string=VARIABLE_START,
        variable_end_string=VARIABLE_END,
        comment_start_string=COMMENT_START,
        comment_end_string=COMMENT_END,
        keep_trailing_newline=True,
        autoescape=False,
        finalize=_finalize,
    )


def compile_host(source: str, template_path: str) -> Template:
    """Compile host source into a Template whose errors point at ``template_path``.

    Raises:
        CompilationError: If the host source (usually a scriptlet) is invalid.
    """
    env = get_host_environment()
    try:
        code = env.compile(source, name=template_path, filename=template_path)
    except TemplateSyntaxError as e:
        raise CompilationError(e.message or str(e), template_path, e.lineno) from e
    return env.template_class.from_code(env, code, env.make_globals(None))
