"""Tests for the TeX-dialect block parser."""

from __future__ import annotations

from pathlib import Path

from peerdoc.parser.base import Block, BlockKind
from peerdoc.parser.tex_parser import TeXParser, parse_tex


def test_sectioning_commands_map_to_levels() -> None:
    tex = "\\section{Introduction}\nText A\n\\subsection{Method}\nText B\n\\subsubsection{Detail}\nText C"

    blocks = parse_tex(tex)

    assert blocks == [
        Block.section(1, "Introduction", "Text A"),
        Block.section(2, "Method", "Text B"),
        Block.section(3, "Detail", "Text C"),
    ]
    assert [b.kind for b in blocks] == [BlockKind.HEADING_1, BlockKind.HEADING_2, BlockKind.HEADING_3]


def test_multiple_lines_between_sections() -> None:
    tex = "\\section{S1}\nLine 1\nLine 2\n\\section{S2}\nLine 3"

    blocks = parse_tex(tex)

    assert blocks[0].content == "Line 1\nLine 2"
    assert blocks[1].content == "Line 3"


def test_heading_with_nested_and_escaped_braces() -> None:
    tex = "\\section{The $\\{x\\}$ set and \\emph{more}}\nBody"

    blocks = parse_tex(tex)

    assert blocks[0].heading == "The $\\{x\\}$ set and \\emph{more}"
    assert blocks[0].content == "Body"


def test_starred_section_and_trailing_text() -> None:
    blocks = parse_tex("\\section*{Intro} same line text")

    assert blocks == [Block.section(1, "Intro", "same line text")]


def test_prelude_and_headingless_documents() -> None:
    blocks = parse_tex("Opening words.\n\\section{A}\nx")
    assert blocks[0] == Block.paragraph("Opening words.")
    assert blocks[1] == Block.section(1, "A", "x")

    assert parse_tex("No sections at all.") == [Block.paragraph("No sections at all.")]
    assert parse_tex("   \n") == []


def test_full_document_uses_body_and_drops_bibliography_commands() -> None:
    tex = r"""
\documentclass{article}
\usepackage{amsmath}

\begin{document}

\section{Intro}

Hello \cite{k1}.

\bibliographystyle{ieeetr}
\bibliography{references}

\end{document}
"""
    blocks = parse_tex(tex)

    assert blocks == [Block.section(1, "Intro", "Hello \\cite{k1}.")]


def test_tex_parser_reads_file(tmp_path: Path) -> None:
    tex_path = tmp_path / "paper.tex"
    tex_path.write_text("\\section{Intro}\nHello", encoding="utf-8")

    assert TeXParser().parse(tex_path) == [Block.section(1, "Intro", "Hello")]
