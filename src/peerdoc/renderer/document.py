"""Render a block sequence back into a complete markdown or TeX document."""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from peerdoc.bibliography import BibliographyEntry, format_bibliography
from peerdoc.config import ExportConfig
from peerdoc.parser.base import Block, SourceFormat, clamp_level
from peerdoc.parser.md_parser import open_fence

from .content import DEFAULT_FIGURE_WIDTH, markdown_to_tex, tex_to_markdown

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_TEX_COMMANDS = {1: "section", 2: "subsection", 3: "subsubsection"}


class DocumentRenderer:
    """Assemble full documents from blocks using the bundled templates."""

    def __init__(self, template_dir: Path | None = None, config: ExportConfig | None = None) -> None:
        template_dir = template_dir or TEMPLATE_DIR
        self.config = config or ExportConfig()
        loader = FileSystemLoader(str(template_dir))
        self._md_env = Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._tex_env = Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            block_start_string=r"\BLOCK{",
            block_end_string="}",
            variable_start_string=r"\VAR{",
            variable_end_string="}",
            comment_start_string=r"\#{",
            comment_end_string="}",
        )

    def render_markdown(self, blocks: Sequence[Block], bibliography: Sequence[BibliographyEntry] = ()) -> str:
        body = markdown_body(blocks)
        references = format_bibliography(bibliography)
        template = self._md_env.get_template("article.md")
        return template.render(
            body=body,
            references=references,
            bibliography_filename=self.config.bibliography_filename,
        ).strip()

    def render_tex(self, blocks: Sequence[Block], bibliography: Sequence[BibliographyEntry] = ()) -> str:
        body = tex_body(blocks, default_width=self.config.default_figure_width)
        template = self._tex_env.get_template("article.tex")
        return template.render(
            body=body,
            bibliography_style=self.config.bibliography_style,
            bibliography_stem=self.config.bibliography_stem if bibliography else None,
        ).strip()


# ---------------------------------------------------------------------------
# Document bodies
# ---------------------------------------------------------------------------

def markdown_heading(block: Block) -> str:
    return f"{'#' * clamp_level(block.level or 1)} {block.heading}"


def tex_heading(block: Block) -> str:
    return f"\\{_TEX_COMMANDS[clamp_level(block.level or 1)]}{{{block.heading}}}"


def markdown_body(blocks: Sequence[Block]) -> str:
    parts: list[str] = []
    for block in blocks:
        content = block.content.strip()
        if content:
            content = close_open_fence(tex_to_markdown(content))
        if block.is_heading:
            heading = markdown_heading(block)
            parts.append(f"{heading}\n\n{content}" if content else heading)
        elif content:
            parts.append(content)
    return "\n\n".join(parts).strip()


def tex_body(blocks: Sequence[Block], *, default_width: str = DEFAULT_FIGURE_WIDTH) -> str:
    parts: list[str] = []
    for block in blocks:
        content = block.content.strip()
        if content:
            content = markdown_to_tex(content, default_width=default_width)
        if block.is_heading:
            heading = tex_heading(block)
            parts.append(f"{heading}\n\n{content}" if content else heading)
        elif content:
            parts.append(content)
    return "\n\n".join(parts).strip()


def close_open_fence(content: str) -> str:
    """Terminate a trailing unclosed code fence so it cannot hide later headings."""
    marker = open_fence(content)
    return f"{content}\n{marker}" if marker else content


def blocks_to_source(blocks: Sequence[Block], source_format: SourceFormat | str) -> str:
    """Serialize blocks in their own syntax, without rewriting or a document preamble."""
    source_format = SourceFormat.coerce(source_format)
    heading_for = tex_heading if source_format is SourceFormat.TEX else markdown_heading

    parts: list[str] = []
    for block in blocks:
        content = block.content.strip()
        if content and source_format is SourceFormat.MARKDOWN:
            content = close_open_fence(content)
        if block.is_heading:
            heading = heading_for(block)
            parts.append(f"{heading}\n\n{content}" if content else heading)
        elif content:
            parts.append(content)
    return "\n\n".join(parts).strip()


@lru_cache(maxsize=8)
def get_renderer(config: ExportConfig | None = None) -> DocumentRenderer:
    return DocumentRenderer(config=config)


def render_markdown(
    blocks: Sequence[Block],
    bibliography: Sequence[BibliographyEntry] = (),
    *,
    config: ExportConfig | None = None,
) -> str:
    return get_renderer(config).render_markdown(blocks, bibliography)


def render_tex(
    blocks: Sequence[Block],
    bibliography: Sequence[BibliographyEntry] = (),
    *,
    config: ExportConfig | None = None,
) -> str:
    return get_renderer(config).render_tex(blocks, bibliography)
