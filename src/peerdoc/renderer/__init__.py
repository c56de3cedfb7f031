"""Renderer package."""

from .content import markdown_to_tex, tex_to_markdown
from .document import DocumentRenderer, blocks_to_source, render_markdown, render_tex

__all__ = [
    "DocumentRenderer",
    "blocks_to_source",
    "markdown_to_tex",
    "render_markdown",
    "render_tex",
    "tex_to_markdown",
]
