"""Tests for the shared block model and stored block payloads."""

from __future__ import annotations

import pytest

from peerdoc.exceptions import UnsupportedFormatError
from peerdoc.parser.base import (
    MAX_BLOCKS,
    Block,
    BlockKind,
    SourceFormat,
    deserialize_blocks,
    infer_source_format,
    normalize_blocks,
    serialize_blocks,
)


def test_block_kind_follows_level() -> None:
    assert Block.paragraph("x").kind is BlockKind.PARAGRAPH
    assert Block.section(2, "H").kind is BlockKind.HEADING_2
    assert Block.section(8, "H").kind is BlockKind.HEADING_3
    assert Block.section(3, "H", "c").to_dict() == {
        "kind": "heading-level-3",
        "level": 3,
        "heading": "H",
        "content": "c",
    }


def test_source_format_coercion() -> None:
    assert SourceFormat.coerce("MD") is SourceFormat.MARKDOWN
    assert SourceFormat.coerce(" latex ") is SourceFormat.TEX
    assert SourceFormat.coerce(SourceFormat.TEX) is SourceFormat.TEX
    with pytest.raises(UnsupportedFormatError):
        SourceFormat.coerce("docx")


def test_infer_source_format() -> None:
    assert infer_source_format("paper.TEX") is SourceFormat.TEX
    assert infer_source_format("notes.md") is SourceFormat.MARKDOWN
    assert infer_source_format("README") is SourceFormat.MARKDOWN
    assert infer_source_format("paper.tex", "markdown") is SourceFormat.MARKDOWN


def test_serialize_and_restore() -> None:
    blocks = [Block.paragraph("Lead"), Block.section(1, "Intro", "Body")]

    assert deserialize_blocks(serialize_blocks(blocks)) == blocks


def test_normalize_drops_malformed_items() -> None:
    items = [
        "junk",
        {"level": True, "heading": "Bool", "content": "x"},
        {"level": "2", "heading": "Str", "content": "x"},
        {"level": float("inf"), "heading": "Inf", "content": "x"},
        {"level": 1, "heading": 5, "content": "x"},
        {"level": 1, "heading": "No content"},
        {"level": 2.0, "heading": "Kept", "content": "a\r\nb "},
    ]

    assert normalize_blocks(items) == [Block.section(2, "Kept", "a\nb")]


def test_normalize_fills_and_clamps() -> None:
    items = [
        {"level": None, "content": " lead "},
        {"level": 9, "heading": "  ", "content": ""},
        {"level": -4, "heading": "h" * 300, "content": "c"},
    ]

    blocks = normalize_blocks(items)

    assert blocks[0] == Block.paragraph("lead")
    assert blocks[1] == Block.section(3, "Section 2", "")
    assert blocks[2].level == 1
    assert len(blocks[2].heading) == 200


def test_normalize_caps_block_count() -> None:
    items = [{"level": 1, "heading": f"H{i}", "content": ""} for i in range(MAX_BLOCKS + 10)]

    assert len(normalize_blocks(items)) == MAX_BLOCKS


def test_invalid_payloads() -> None:
    assert deserialize_blocks("{not json") == []
    assert deserialize_blocks('{"level": 1}') == []
    assert normalize_blocks(None) == []
