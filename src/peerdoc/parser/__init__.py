"""Parser package."""

from .base import (
    Block,
    BlockKind,
    SourceFormat,
    clamp_level,
    deserialize_blocks,
    infer_source_format,
    normalize_blocks,
    serialize_blocks,
)
from .md_parser import MarkdownParser, open_fence, parse_markdown, split_front_matter
from .tex_parser import TeXParser, parse_tex

__all__ = [
    "Block",
    "BlockKind",
    "SourceFormat",
    "clamp_level",
    "deserialize_blocks",
    "infer_source_format",
    "normalize_blocks",
    "serialize_blocks",
    "MarkdownParser",
    "open_fence",
    "parse_markdown",
    "split_front_matter",
    "TeXParser",
    "parse_tex",
]
