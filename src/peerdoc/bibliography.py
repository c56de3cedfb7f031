"""BibTeX entry handling and the numbered reference-list formatter."""

from __future__ import annotations

import io
import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pybtex.database import Entry, Person
from pybtex.database.input import bibtex
from pybtex.exceptions import PybtexError

from peerdoc.parser.base import Block, normalize_newlines

logger = logging.getLogger(__name__)

MAX_BIB_ENTRIES = 500

_NON_ENTRY_TYPES = {"comment", "string", "preamble"}
_ENTRY_HEADER_RE = re.compile(r"@([A-Za-z]+)\s*([{(])")
_CITATION_RE = re.compile(
    r"\[@(?P<md>[A-Za-z0-9:_-]+)\]|\\cite[pt]?\*?(?:\[[^\]]*\])?\{(?P<tex>[^{}]+)\}"
)


@dataclass(frozen=True, slots=True)
class BibliographyEntry:
    """A citation key with display metadata and its original BibTeX text."""

    key: str
    raw: str
    title: str | None = None
    authors: tuple[str, ...] = ()
    surnames: tuple[str, ...] = ()
    year: str | None = None
    venue: str | None = None

    @classmethod
    def from_bibtex(cls, raw: str, key: str | None = None) -> BibliographyEntry:
        """Build an entry from a single BibTeX record.

        Metadata is read with pybtex. A record pybtex rejects keeps its key and
        raw text but carries no metadata.
        """
        raw = raw.strip()
        if key is None:
            header = re.match(r"@[A-Za-z]+\s*[{(]\s*([^,\s]+)\s*,", raw)
            key = header.group(1) if header else ""

        try:
            parsed = bibtex.Parser().parse_stream(io.StringIO(raw))
        except (OSError, PybtexError) as exc:
            logger.warning("Could not read BibTeX entry %r: %s", key, exc)
            return cls(key=key, raw=raw)

        if not parsed.entries:
            return cls(key=key, raw=raw)
        _, entry = next(iter(parsed.entries.items()))
        return _entry_from_pybtex(key, raw, entry)


def _entry_from_pybtex(key: str, raw: str, entry: Entry) -> BibliographyEntry:
    persons = entry.persons.get("author") or entry.persons.get("editor") or []
    venue = None
    for field_name in ("journal", "booktitle", "publisher", "howpublished"):
        if entry.fields.get(field_name):
            venue = _clean_field(entry.fields[field_name])
            break
    return BibliographyEntry(
        key=key,
        raw=raw,
        title=_clean_field(entry.fields.get("title", "")) or None,
        authors=tuple(_display_name(p) for p in persons),
        surnames=tuple(_surname(p) for p in persons),
        year=_clean_field(entry.fields.get("year", "")) or None,
        venue=venue or None,
    )


def _clean_field(value: str) -> str:
    value = value.replace("{", "").replace("}", "")
    return re.sub(r"\s+", " ", value).strip()


def _display_name(person: Person) -> str:
    parts = [*person.first_names, *person.middle_names, *person.prelast_names, *person.last_names]
    name = " ".join(_clean_field(str(p)) for p in parts)
    if person.lineage_names:
        name = f"{name}, {' '.join(person.lineage_names)}"
    return name.strip()


def _surname(person: Person) -> str:
    return _clean_field(" ".join([*person.prelast_names, *person.last_names]))


# ---------------------------------------------------------------------------
# Scanning raw BibTeX sources
# ---------------------------------------------------------------------------

def _entry_spans(raw: str) -> list[tuple[str, int, int]]:
    """Return ``(key, start, end)`` for each balanced ``@type{key, ...}`` record."""
    spans: list[tuple[str, int, int]] = []
    cursor = 0

    while cursor < len(raw):
        at = raw.find("@", cursor)
        if at == -1:
            break

        header = _ENTRY_HEADER_RE.match(raw, at)
        if not header or header.group(1).lower() in _NON_ENTRY_TYPES:
            cursor = at + 1
            continue

        open_ch = header.group(2)
        close_ch = "}" if open_ch == "{" else ")"
        key_end = raw.find(",", header.end())
        if key_end == -1:
            cursor = header.end()
            continue

        key = raw[header.end():key_end].strip()
        if not key:
            cursor = key_end + 1
            continue

        depth = 1
        idx = key_end + 1
        while idx < len(raw) and depth > 0:
            if raw[idx] == open_ch:
                depth += 1
            elif raw[idx] == close_ch:
                depth -= 1
            idx += 1

        if depth != 0:
            cursor = key_end + 1
            continue

        spans.append((key, at, idx))
        cursor = idx

    return spans


def parse_bibtex_entries(raw: str) -> list[BibliographyEntry]:
    """Parse every record in a BibTeX source; the first definition of a key wins."""
    raw = normalize_newlines(raw)
    entries: list[BibliographyEntry] = []
    seen: set[str] = set()
    for key, start, end in _entry_spans(raw):
        if key in seen:
            continue
        seen.add(key)
        entries.append(BibliographyEntry.from_bibtex(raw[start:end], key))
        if len(entries) >= MAX_BIB_ENTRIES:
            break
    return entries


def split_bibtex_source_blocks(raw: str) -> list[str]:
    """Split a BibTeX source into records and the free text between them."""
    normalized = normalize_newlines(raw)
    spans = _entry_spans(normalized)
    if not spans:
        single = normalized.strip()
        return [single] if single else []

    chunks: list[str] = []
    cursor = 0
    for _key, start, end in spans:
        between = normalized[cursor:start].strip()
        if between:
            chunks.append(between)
        chunks.append(normalized[start:end].strip())
        cursor = end
    tail = normalized[cursor:].strip()
    if tail:
        chunks.append(tail)
    return chunks


def format_bibtex_source(raw: str) -> str:
    """Re-indent each record with aligned ``name = value`` fields."""
    normalized = normalize_newlines(raw)
    spans = _entry_spans(normalized)
    if not spans:
        return normalized.strip()

    chunks: list[str] = []
    cursor = 0
    for _key, start, end in spans:
        between = normalized[cursor:start].strip()
        if between:
            chunks.append(between)
        chunks.append(_format_bibtex_entry(normalized[start:end]))
        cursor = end
    tail = normalized[cursor:].strip()
    if tail:
        chunks.append(tail)
    return "\n\n".join(chunks).strip()


def _format_bibtex_entry(record: str) -> str:
    record = record.strip()
    header = re.match(r"^@([A-Za-z]+)\s*([{(])\s*([^,\s]+)\s*,", record)
    if not header:
        return record

    entry_type, open_ch, key = header.group(1), header.group(2), header.group(3)
    close_ch = "}" if open_ch == "{" else ")"
    fields = _split_fields(record[header.end():-1])
    if not fields:
        return f"@{entry_type}{open_ch}{key}{close_ch}"

    width = max((len(f.split("=", 1)[0].strip()) for f in fields if "=" in f), default=0)
    lines = []
    for field_text in fields:
        if "=" not in field_text:
            lines.append(f"  {field_text.strip()}")
            continue
        name, value = field_text.split("=", 1)
        value = re.sub(r"\n\s*", " ", value.strip())
        lines.append(f"  {name.strip().ljust(width)} = {value}")
    return f"@{entry_type}{open_ch}{key},\n" + ",\n".join(lines) + f"\n{close_ch}"


def _split_fields(payload: str) -> list[str]:
    """Split a record body on top-level commas, honouring braces and quotes."""
    fields: list[str] = []
    depth = 0
    in_quote = False
    start = 0
    for i, ch in enumerate(payload):
        if ch == '"' and (i == 0 or payload[i - 1] != "\\") and depth == 0:
            in_quote = not in_quote
        elif in_quote:
            continue
        elif ch == "{":
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
        elif ch == "," and depth == 0:
            chunk = payload[start:i].strip()
            if chunk:
                fields.append(chunk)
            start = i + 1
    tail = payload[start:].strip()
    if tail:
        fields.append(tail)
    return fields


# ---------------------------------------------------------------------------
# Reference list formatting
# ---------------------------------------------------------------------------

def _format_authors(authors: tuple[str, ...]) -> str:
    if not authors:
        return "Unknown author"
    if len(authors) >= 3:
        return f"{authors[0]} et al."
    if len(authors) == 2:
        return f"{authors[0]} and {authors[1]}"
    return authors[0]


def format_bibliography(entries: Iterable[BibliographyEntry]) -> list[str]:
    """Render entries as an IEEE-like numbered list, keeping input order."""
    lines = []
    for index, entry in enumerate(entries, start=1):
        parts = [_format_authors(entry.authors), f'"{entry.title or entry.key}"']
        if entry.venue:
            parts.append(entry.venue)
        parts.append(entry.year or "n.d.")
        lines.append(f"[{index}] {', '.join(parts)}.")
    return lines


def format_citation_chip(entry: BibliographyEntry) -> str:
    """Short in-editor label such as ``Smith, 2020``."""
    surname = entry.surnames[0] if entry.surnames else None
    if surname and entry.year:
        return f"{surname}, {entry.year}"
    if entry.year:
        return f"{entry.key}, {entry.year}"
    return entry.key


# ---------------------------------------------------------------------------
# Citation keys
# ---------------------------------------------------------------------------

def extract_citation_keys(text: str) -> list[str]:
    """Return cited keys in first-seen order from ``[@key]`` and ``\\cite{a,b}`` markers."""
    keys: list[str] = []
    seen: set[str] = set()
    for m in _CITATION_RE.finditer(text):
        found = [m.group("md")] if m.group("md") else m.group("tex").split(",")
        for key in found:
            key = key.strip()
            if key and key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def extract_citation_keys_from_blocks(blocks: Iterable[Block]) -> list[str]:
    combined = "\n".join(f"{b.heading}\n{b.content}" for b in blocks)
    return extract_citation_keys(combined)


# ---------------------------------------------------------------------------
# Storage payloads
# ---------------------------------------------------------------------------

def compact_bibliography(entries: Iterable[BibliographyEntry]) -> list[dict[str, str]]:
    """Keep the first non-blank record per key, as ``{"key", "rawBibtex"}`` pairs."""
    result: list[dict[str, str]] = []
    seen: set[str] = set()
    for entry in entries:
        key = entry.key.strip()
        raw = entry.raw.strip()
        if not key or not raw or key in seen:
            continue
        seen.add(key)
        result.append({"key": key, "rawBibtex": raw})
        if len(result) >= MAX_BIB_ENTRIES:
            break
    return result


def serialize_bibliography(entries: Iterable[BibliographyEntry]) -> str:
    return json.dumps(compact_bibliography(entries), ensure_ascii=False)


def normalize_bibliography(items: Any) -> list[BibliographyEntry]:
    if not isinstance(items, list):
        return []
    entries: list[BibliographyEntry] = []
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        key = item.get("key")
        # Older payloads used "raw".
        raw = item.get("rawBibtex", item.get("raw"))
        if not isinstance(key, str) or not isinstance(raw, str):
            continue
        key, raw = key.strip(), raw.strip()
        if not key or not raw or key in seen:
            continue
        seen.add(key)
        entries.append(BibliographyEntry.from_bibtex(raw, key))
        if len(entries) >= MAX_BIB_ENTRIES:
            break
    return entries


def deserialize_bibliography(raw: str) -> list[BibliographyEntry]:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return normalize_bibliography(parsed)
