"""Cross-format export: parse the source, then render the target document."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from peerdoc.bibliography import BibliographyEntry, extract_citation_keys_from_blocks
from peerdoc.config import ExportConfig
from peerdoc.parser.base import Block, SourceFormat
from peerdoc.parser.md_parser import parse_markdown
from peerdoc.parser.tex_parser import parse_tex
from peerdoc.renderer.document import get_renderer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportResult:
    content: str
    warnings: list[str] = field(default_factory=list)
    # Companion .bib payload for callers that persist a sibling file.
    bibliography_file: str | None = None


def parse_source(text: str, source_format: SourceFormat | str) -> list[Block]:
    if SourceFormat.coerce(source_format) is SourceFormat.TEX:
        return parse_tex(text)
    return parse_markdown(text)


def export_source(
    source_text: str,
    source_format: SourceFormat | str,
    target_format: SourceFormat | str,
    bibliography: Sequence[BibliographyEntry] = (),
    all_project_entries: Sequence[BibliographyEntry] | None = None,
    *,
    config: ExportConfig | None = None,
) -> ExportResult:
    """Convert ``source_text`` into a complete document in ``target_format``.

    ``bibliography`` drives the reference section or bibliography commands;
    ``all_project_entries``, when given, is concatenated into the companion
    bibliography file payload.
    """
    target = SourceFormat.coerce(target_format)
    blocks = parse_source(source_text, source_format)
    renderer = get_renderer(config)

    if target is SourceFormat.TEX:
        content = renderer.render_tex(blocks, bibliography)
    else:
        content = renderer.render_markdown(blocks, bibliography)

    result = ExportResult(content=content, warnings=missing_citation_warnings(blocks, bibliography))
    if all_project_entries:
        result.bibliography_file = "\n\n".join(entry.raw for entry in all_project_entries)

    logger.debug(
        "Exported %d blocks to %s with %d warning(s)", len(blocks), target.value, len(result.warnings)
    )
    return result


def missing_citation_warnings(blocks: Sequence[Block], bibliography: Sequence[BibliographyEntry]) -> list[str]:
    known = {entry.key for entry in bibliography}
    return [
        f"Citation key '{key}' has no bibliography entry"
        for key in extract_citation_keys_from_blocks(blocks)
        if key not in known
    ]
