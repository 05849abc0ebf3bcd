"""CLI commands"""

from .compile import compile_command
from .render import render_command
from .tags import tags_command

__all__ = ["compile_command", "render_command", "tags_command"]
