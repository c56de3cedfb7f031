"""Canonical block representation shared by the parsers and renderers."""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from peerdoc.exceptions import UnsupportedFormatError

MAX_LEVEL = 3
MAX_BLOCKS = 200
MAX_HEADING_LENGTH = 200
MAX_CONTENT_LENGTH = 20_000


class SourceFormat(str, Enum):
    MARKDOWN = "markdown"
    TEX = "tex"

    @classmethod
    def coerce(cls, value: SourceFormat | str) -> SourceFormat:
        """Accept an enum member or a name such as ``"md"``, ``"markdown"`` or ``"tex"``."""
        if isinstance(value, cls):
            return value
        lowered = str(value).strip().lower()
        if lowered in ("md", "markdown"):
            return cls.MARKDOWN
        if lowered in ("tex", "latex"):
            return cls.TEX
        raise UnsupportedFormatError(f"Unsupported source format {value!r} (expected markdown or tex)")


class BlockKind(str, Enum):
    HEADING_1 = "heading-level-1"
    HEADING_2 = "heading-level-2"
    HEADING_3 = "heading-level-3"
    PARAGRAPH = "paragraph"


_HEADING_KINDS = (BlockKind.HEADING_1, BlockKind.HEADING_2, BlockKind.HEADING_3)


def clamp_level(level: int) -> int:
    return max(1, min(MAX_LEVEL, int(level)))


@dataclass(slots=True)
class Block:
    """One unit of document structure.

    Heading blocks carry a ``level`` and ``heading`` text; the paragraph block
    that holds text before the first heading has ``level=None``. Order in the
    containing list is the only structural signal.
    """

    level: int | None = None
    heading: str = ""
    content: str = ""

    @classmethod
    def section(cls, level: int, heading: str, content: str = "") -> Block:
        return cls(level=level, heading=heading, content=content)

    @classmethod
    def paragraph(cls, content: str) -> Block:
        return cls(level=None, heading="", content=content)

    @property
    def is_heading(self) -> bool:
        return self.level is not None

    @property
    def kind(self) -> BlockKind:
        if self.level is None:
            return BlockKind.PARAGRAPH
        return _HEADING_KINDS[clamp_level(self.level) - 1]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "level": self.level, "heading": self.heading, "content": self.content}


def infer_source_format(name: str, current: SourceFormat | str | None = None) -> SourceFormat:
    """Return ``current`` when set, otherwise guess from the file extension."""
    if current:
        return SourceFormat.coerce(current)
    return SourceFormat.TEX if name.lower().endswith(".tex") else SourceFormat.MARKDOWN


def normalize_newlines(text: str) -> str:
    return re.sub(r"\r\n?", "\n", text)


# ---------------------------------------------------------------------------
# Normalisation of untrusted block payloads
# ---------------------------------------------------------------------------

def normalize_blocks(items: Any) -> list[Block]:
    """Build blocks from decoded JSON, dropping malformed items and enforcing size limits."""
    if not isinstance(items, list):
        return []

    blocks: list[Block] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        level = item.get("level")
        heading = item.get("heading", "")
        content = item.get("content")
        if level is not None and (isinstance(level, bool) or not isinstance(level, (int, float))):
            continue
        if isinstance(level, float) and not math.isfinite(level):
            continue
        if not isinstance(heading, str) or not isinstance(content, str):
            continue

        content = normalize_newlines(content).strip()[:MAX_CONTENT_LENGTH]
        if level is None:
            blocks.append(Block.paragraph(content))
        else:
            title = heading.strip()[:MAX_HEADING_LENGTH] or f"Section {len(blocks) + 1}"
            blocks.append(Block.section(clamp_level(level), title, content))

        if len(blocks) >= MAX_BLOCKS:
            break

    return blocks


def serialize_blocks(blocks: list[Block]) -> str:
    return json.dumps(
        [{"level": b.level, "heading": b.heading, "content": b.content} for b in blocks],
        ensure_ascii=False,
    )


def deserialize_blocks(raw: str) -> list[Block]:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return normalize_blocks(parsed)
