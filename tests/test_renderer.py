"""Tests for block rendering, content rewriting and parse/render round trips.

Covers:
- Markdown and TeX document assembly, with and without a bibliography
- Heading level clamping
- Figure, display math and citation rewriting in both directions
- Round-trip identity for both syntaxes
- Raw source serialisation
"""

from __future__ import annotations

from peerdoc.bibliography import BibliographyEntry
from peerdoc.config import ExportConfig
from peerdoc.parser.base import Block
from peerdoc.parser.md_parser import parse_markdown
from peerdoc.parser.tex_parser import parse_tex
from peerdoc.renderer.content import figure_width, markdown_to_tex, tex_to_markdown
from peerdoc.renderer.document import blocks_to_source, render_markdown, render_tex

SMITH = BibliographyEntry(
    key="smith2020",
    raw="@article{smith2020, title={Deep Learning}}",
    title="Deep Learning",
    authors=("John Smith",),
    surnames=("Smith",),
    year="2020",
    venue="Nature",
)

ROUND_TRIP_BLOCKS = [
    Block.paragraph("Preamble text."),
    Block.section(1, "Intro", "Hello\n\nWorld"),
    Block.section(2, "Method", ""),
    Block.section(3, "Detail", "Last words."),
]


# ---------------------------------------------------------------------------
# Markdown documents
# ---------------------------------------------------------------------------

def test_render_markdown_without_bibliography() -> None:
    blocks = [Block.section(1, "Intro", "Hello"), Block.section(2, "Method", "")]

    assert render_markdown(blocks, []) == "# Intro\n\nHello\n\n## Method"


def test_render_markdown_with_bibliography() -> None:
    md = render_markdown([Block.section(1, "Intro", "Text \\cite{smith2020}")], [SMITH])

    assert md.startswith("---\nbibliography: references.bib\n---\n\n# Intro")
    assert "Text [@smith2020]" in md
    assert md.endswith('## References\n\n[1] John Smith, "Deep Learning", Nature, 2020.')


def test_render_markdown_custom_bibliography_file() -> None:
    md = render_markdown([Block.section(1, "A", "x")], [SMITH], config=ExportConfig(bibliography_filename="refs.bib"))

    assert "bibliography: refs.bib" in md


def test_levels_are_clamped_on_render() -> None:
    blocks = [Block.section(0, "Low", "a"), Block.section(9, "High", "b")]

    assert render_markdown(blocks) == "# Low\n\na\n\n### High\n\nb"
    assert "\\section{Low}" in render_tex(blocks)
    assert "\\subsubsection{High}" in render_tex(blocks)


# ---------------------------------------------------------------------------
# TeX documents
# ---------------------------------------------------------------------------

def test_render_tex_document_frame() -> None:
    tex = render_tex([Block.section(1, "Intro", "Text [@k1]")], [])

    assert tex.startswith("\\documentclass{article}\n\\usepackage[utf8]{inputenc}\n\\usepackage{graphicx}")
    assert "\\usepackage{amsmath}" in tex
    assert "\\begin{document}\n\n\\section{Intro}\n\nText \\cite{k1}" in tex
    assert "\\bibliography" not in tex
    assert tex.endswith("\\end{document}")


def test_render_tex_with_bibliography() -> None:
    tex = render_tex([Block.section(1, "Intro", "Text [@smith2020]")], [SMITH])

    assert "\\bibliographystyle{ieeetr}\n\\bibliography{references}" in tex
    assert tex.endswith("\\end{document}")


def test_render_tex_bibliography_options() -> None:
    config = ExportConfig(bibliography_filename="library.bib", bibliography_style="plain")

    tex = render_tex([Block.section(1, "A", "x")], [SMITH], config=config)

    assert "\\bibliographystyle{plain}\n\\bibliography{library}" in tex


# ---------------------------------------------------------------------------
# Figures
# ---------------------------------------------------------------------------

def test_figure_to_tex() -> None:
    tex = markdown_to_tex("![Fig](img.png){#fig1 width=0.5}")

    assert tex == "\n".join([
        "\\begin{figure}[htbp]",
        "  \\centering",
        "  \\includegraphics[width=0.5\\linewidth]{img.png}",
        "  \\caption{Fig}",
        "  \\label{fig1}",
        "\\end{figure}",
    ])


def test_figure_without_caption_or_label() -> None:
    tex = markdown_to_tex("![](plot.pdf)")

    assert "\\includegraphics[width=0.8\\linewidth]{plot.pdf}" in tex
    assert "\\caption" not in tex
    assert "\\label" not in tex


def test_figure_width_validation() -> None:
    assert figure_width("0.5") == "0.5"
    assert figure_width("1") == "1"
    assert figure_width("1.0") == "1.0"
    assert figure_width(".25") == ".25"
    for bad in ("1.5", "0", "0.0", "abc", "-0.5", "1e-1", "nan", "", None):
        assert figure_width(bad) == "0.8"

    assert "width=0.8\\linewidth" in markdown_to_tex("![F](a.png){width=2}")
    assert "width=0.8\\linewidth" in markdown_to_tex("![F](a.png){width=wide}")


def test_figure_from_tex() -> None:
    tex = markdown_to_tex("![Fig](img.png){#fig1 width=0.5}")

    assert tex_to_markdown(tex) == "![Fig](img.png){#fig1 width=0.5}"


# ---------------------------------------------------------------------------
# Display math
# ---------------------------------------------------------------------------

def test_multiline_math_to_equation() -> None:
    assert markdown_to_tex("$$\nE = mc^2\n$$") == "\\begin{equation}\nE = mc^2\n\\end{equation}"


def test_same_line_math_to_equation() -> None:
    assert markdown_to_tex("before\n$$a + b$$\nafter") == "before\n\\begin{equation}\na + b\n\\end{equation}\nafter"


def test_equation_to_fenced_math() -> None:
    tex = "Intro\n\\begin{equation}\nE = mc^2\n\\end{equation}\nOutro"

    assert tex_to_markdown(tex) == "Intro\n$$\nE = mc^2\n$$\nOutro"


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------

def test_citation_markers_convert_both_ways() -> None:
    assert markdown_to_tex("As seen in [@key1] and [@key2].") == "As seen in \\cite{key1} and \\cite{key2}."
    assert tex_to_markdown("As seen in \\cite{key1}.") == "As seen in [@key1]."


def test_citation_round_trip_is_stable() -> None:
    md = "See [@smith2020] and [@doe:2019_b]."
    text = md
    for _ in range(3):
        tex = markdown_to_tex(text)
        assert tex == "See \\cite{smith2020} and \\cite{doe:2019_b}."
        text = tex_to_markdown(tex)
        assert text == md


def test_multi_key_cite_splits_into_markers() -> None:
    assert tex_to_markdown("\\cite{a, b}") == "[@a][@b]"


def test_unmatched_lines_pass_through() -> None:
    text = "Plain line\n  indented $x$ inline\n\\textbf{bold}"

    assert markdown_to_tex(text) == text
    assert tex_to_markdown(text) == text


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------

def test_markdown_round_trip_identity() -> None:
    assert parse_markdown(render_markdown(ROUND_TRIP_BLOCKS, [])) == ROUND_TRIP_BLOCKS


def test_tex_round_trip_identity() -> None:
    assert parse_tex(render_tex(ROUND_TRIP_BLOCKS, [])) == ROUND_TRIP_BLOCKS


def test_tex_round_trip_with_bibliography_commands() -> None:
    blocks = [Block.section(1, "Intro", "Hello")]

    assert parse_tex(render_tex(blocks, [SMITH])) == blocks


def test_round_trip_clamps_levels() -> None:
    blocks = [Block.section(7, "Deep", "c")]

    assert parse_markdown(render_markdown(blocks)) == [Block.section(3, "Deep", "c")]
    assert parse_tex(render_tex(blocks)) == [Block.section(3, "Deep", "c")]


# ---------------------------------------------------------------------------
# Raw source serialisation
# ---------------------------------------------------------------------------

def test_blocks_to_source_keeps_content_verbatim() -> None:
    blocks = [Block.paragraph("Intro [@k]"), Block.section(2, "Method", "$$x$$")]

    assert blocks_to_source(blocks, "markdown") == "Intro [@k]\n\n## Method\n\n$$x$$"
    assert blocks_to_source(blocks, "tex") == "Intro [@k]\n\n\\subsection{Method}\n\n$$x$$"


def test_round_trip_keeps_leading_metadata_paragraph() -> None:
    blocks = [Block.paragraph("---\nkey: v\n---\nbody"), Block.section(1, "B", "b")]

    assert parse_markdown(render_markdown(blocks)) == blocks
    assert parse_markdown(render_markdown(blocks, [SMITH]))[:2] == blocks


def test_unclosed_fence_is_closed_before_next_heading() -> None:
    blocks = [Block.section(1, "A", "```\ncode"), Block.section(1, "B", "b")]

    md = render_markdown(blocks)

    assert md == "# A\n\n```\ncode\n```\n\n# B\n\nb"
    assert parse_markdown(md) == [Block.section(1, "A", "```\ncode\n```"), Block.section(1, "B", "b")]
    assert blocks_to_source(blocks, "markdown") == md
    assert blocks_to_source(blocks, "tex") == "\\section{A}\n\n```\ncode\n\n\\section{B}\n\nb"
