"""TeX-dialect parser producing the canonical block sequence."""

from __future__ import annotations

import re
from pathlib import Path

from .base import MAX_BLOCKS, Block, normalize_newlines

_SECTION_LEVELS = {
    "section": 1,
    "subsection": 2,
    "subsubsection": 3,
}

_SECTION_RE = re.compile(r"\\(section|subsection|subsubsection)\*?\s*\{")
_BIBLIOGRAPHY_RE = re.compile(r"^[ \t]*\\(?:bibliographystyle|bibliography)\{[^{}]*\}[ \t]*\n?", re.MULTILINE)


class TeXParser:
    """Parse a TeX file into blocks."""

    def parse(self, input_path: Path) -> list[Block]:
        raw = Path(input_path).read_text(encoding="utf-8", errors="ignore")
        return parse_tex(raw)


def parse_tex(text: str) -> list[Block]:
    """Split TeX text into heading blocks at sectioning commands.

    When the text is a full document only the ``document`` environment body is
    considered, and ``\\bibliography``/``\\bibliographystyle`` lines are dropped.
    Text before the first sectioning command becomes a leading paragraph block.
    """
    text = normalize_newlines(text)
    body = _extract_document_body(text)
    if body is not text:
        body = _BIBLIOGRAPHY_RE.sub("", body)

    spans: list[tuple[int, int, int, str]] = []
    for match in _SECTION_RE.finditer(body):
        if spans and match.start() < spans[-1][1]:
            # Inside the braced title of the previous command.
            continue
        title, title_end = _read_balanced_braces(body, match.end() - 1)
        spans.append((match.start(), title_end, _SECTION_LEVELS[match.group(1)], title.strip()))

    blocks: list[Block] = []
    prelude = body[: spans[0][0]] if spans else body
    if prelude.strip():
        blocks.append(Block.paragraph(prelude.strip()))

    for idx, (_start, content_start, level, title) in enumerate(spans):
        content_end = spans[idx + 1][0] if idx + 1 < len(spans) else len(body)
        blocks.append(Block.section(level, title, body[content_start:content_end].strip()))

    return blocks[:MAX_BLOCKS]


def _extract_document_body(text: str) -> str:
    doc_match = re.search(r"\\begin\{document\}(.*?)\\end\{document\}", text, flags=re.DOTALL)
    return doc_match.group(1) if doc_match else text


def _read_balanced_braces(text: str, brace_start: int) -> tuple[str, int]:
    if brace_start >= len(text) or text[brace_start] != "{":
        return "", brace_start
    depth = 0
    chars = []
    i = brace_start
    while i < len(text):
        ch = text[i]
        if ch == "{" and (i == 0 or text[i - 1] != "\\"):
            depth += 1
            if depth > 1:
                chars.append(ch)
        elif ch == "}" and (i == 0 or text[i - 1] != "\\"):
            depth -= 1
            if depth == 0:
                return "".join(chars), i + 1
            chars.append(ch)
        else:
            if depth >= 1:
                chars.append(ch)
        i += 1
    return "".join(chars), i
