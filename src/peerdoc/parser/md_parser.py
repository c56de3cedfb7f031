"""Markdown-dialect parser producing the canonical block sequence."""

from __future__ import annotations

import re
from pathlib import Path

from .base import MAX_BLOCKS, Block, normalize_newlines


class MarkdownParser:
    """Parse a Markdown file into blocks."""

    def parse(self, input_path: Path) -> list[Block]:
        raw = Path(input_path).read_text(encoding="utf-8", errors="ignore")
        return parse_markdown(raw)


def parse_markdown(text: str) -> list[Block]:
    """Split markdown text into heading blocks at ``#``, ``##`` and ``###`` lines.

    Text before the first heading becomes a leading paragraph block. Heading
    markers inside fenced code blocks are treated as content. A front matter
    block that only names the bibliography file is dropped; any other front
    matter stays in the leading paragraph.
    """
    text = normalize_newlines(text)
    meta, body = split_front_matter(text)
    if not meta or set(meta) - _RENDERED_FRONT_MATTER_KEYS:
        body = text

    blocks: list[Block] = []
    level: int | None = None
    heading = ""
    lines: list[str] = []
    fence: str | None = None

    for line in body.split("\n"):
        marker = _fence_marker(line)
        if fence is not None:
            lines.append(line)
            if marker and _closes(fence, marker):
                fence = None
            continue
        if marker:
            fence = marker
            lines.append(line)
            continue

        m = _HEADING_RE.match(line)
        if m:
            _flush(blocks, level, heading, lines)
            level = len(m.group(1))
            heading = m.group(2).strip()
            lines = []
            continue

        lines.append(line)

    _flush(blocks, level, heading, lines)
    return blocks[:MAX_BLOCKS]


def open_fence(text: str) -> str | None:
    """Return the marker of a code fence still open at the end of ``text``."""
    fence: str | None = None
    for line in text.split("\n"):
        marker = _fence_marker(line)
        if fence is None:
            fence = marker
        elif marker and _closes(fence, marker):
            fence = None
    return fence


_HEADING_RE = re.compile(r"^(#{1,3})[ \t]+(\S.*?)\s*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_RENDERED_FRONT_MATTER_KEYS = {"bibliography"}


def _fence_marker(line: str) -> str | None:
    m = _FENCE_RE.match(line)
    return m.group(1) if m else None


def _closes(fence: str, marker: str) -> bool:
    return marker[0] == fence[0] and len(marker) >= len(fence)


def _flush(blocks: list[Block], level: int | None, heading: str, lines: list[str]) -> None:
    content = "\n".join(lines).strip()
    if level is None:
        if content:
            blocks.append(Block.paragraph(content))
        return
    blocks.append(Block.section(level, heading, content))


# ---------------------------------------------------------------------------
# YAML-like front matter
# ---------------------------------------------------------------------------

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(.*?)^---[ \t]*$\n?", re.DOTALL | re.MULTILINE)
_FRONT_MATTER_LINE_RE = re.compile(r"^(?:[A-Za-z_][\w-]*\s*:.*|\s+.*|\s*-\s.*|\s*#.*|\s*)$")


def split_front_matter(text: str) -> tuple[dict[str, str | list[str]], str]:
    """Split a leading ``---`` metadata block from the body.

    The block is only recognised when every line looks like ``key: value``,
    a list item, or a continuation, so a leading thematic break survives.
    """
    m = _FRONT_MATTER_RE.match(text)
    if not m:
        return {}, text
    raw = m.group(1)
    if not all(_FRONT_MATTER_LINE_RE.match(line) for line in raw.splitlines()):
        return {}, text
    return _parse_front_matter(raw), text[m.end():]


def _parse_front_matter(raw: str) -> dict[str, str | list[str]]:
    """Minimal YAML-like parser for flat ``key: value`` metadata (no pyyaml dependency)."""
    result: dict[str, str | list[str]] = {}
    current: str | None = None

    for line in raw.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        # Block list item under the previous key.
        if stripped.startswith("- ") and current is not None:
            existing = result.get(current)
            items = existing if isinstance(existing, list) else []
            items.append(_unquote(stripped[2:].strip()))
            result[current] = items
            continue

        m = re.match(r"^([A-Za-z_][\w-]*)\s*:\s*(.*)", stripped)
        if not m:
            continue

        current = m.group(1).lower()
        value = m.group(2).strip()
        if value.startswith("[") and value.endswith("]"):
            result[current] = [_unquote(p.strip()) for p in value[1:-1].split(",") if p.strip()]
        else:
            result[current] = _unquote(value)

    return result


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
        return value[1:-1]
    return value
