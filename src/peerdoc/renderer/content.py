"""Line-oriented rewriting of block content between the two surface syntaxes."""

from __future__ import annotations

import math
import re

from peerdoc.parser.base import normalize_newlines

DEFAULT_FIGURE_WIDTH = "0.8"

_FIGURE_MD_RE = re.compile(r"^!\[([^\]]*)\]\(([^)\s]+)\)(?:\{([^}]*)\})?$")
_CITE_MD_RE = re.compile(r"\[@([A-Za-z0-9:_-]+)\]")
_CITE_TEX_RE = re.compile(r"\\cite\{\s*([A-Za-z0-9:_-]+(?:\s*,\s*[A-Za-z0-9:_-]+)*)\s*\}")
_WIDTH_RE = re.compile(r"^(?:\d+\.?\d*|\.\d+)$")
_INCLUDEGRAPHICS_RE = re.compile(r"\\includegraphics(?:\[([^\]]*)\])?\{([^{}]+)\}")


# ---------------------------------------------------------------------------
# Markdown -> TeX
# ---------------------------------------------------------------------------

def markdown_to_tex(text: str, *, default_width: str = DEFAULT_FIGURE_WIDTH) -> str:
    """Rewrite figure lines, ``$$`` math blocks and ``[@key]`` citations as TeX."""
    lines = normalize_newlines(text).split("\n")
    out: list[str] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        trimmed = line.strip()

        figure = _FIGURE_MD_RE.match(trimmed)
        if figure:
            out.extend(_figure_to_tex(figure, default_width))
            i += 1
            continue

        if trimmed.startswith("$$"):
            body, i = _read_display_math(lines, i)
            out.append("\\begin{equation}")
            out.append("\n".join(body))
            out.append("\\end{equation}")
            continue

        out.append(_CITE_MD_RE.sub(r"\\cite{\1}", line))
        i += 1

    return "\n".join(out)


def _read_display_math(lines: list[str], start: int) -> tuple[list[str], int]:
    """Collect a ``$$`` block starting at ``lines[start]``; return its body and the next index."""
    trimmed = lines[start].strip()
    if len(trimmed) > 4 and trimmed.endswith("$$"):
        return [trimmed[2:-2].strip()], start + 1

    body: list[str] = []
    opening = lines[start][lines[start].index("$$") + 2:].strip()
    if opening:
        body.append(opening)

    i = start + 1
    while i < len(lines):
        end = lines[i].find("$$")
        if end >= 0:
            tail = lines[i][:end].strip()
            if tail:
                body.append(tail)
            return body, i + 1
        body.append(lines[i])
        i += 1
    return body, i


def parse_figure_attributes(attrs: str) -> dict[str, str]:
    """Read ``#label`` and ``width=...`` from a ``{...}`` attribute list."""
    parsed: dict[str, str] = {}
    for part in attrs.split():
        if part.startswith("#") and len(part) > 1:
            parsed["label"] = part[1:]
        elif part.startswith("width="):
            parsed["width"] = part[len("width="):]
    return parsed


def figure_width(value: str | None, default: str = DEFAULT_FIGURE_WIDTH) -> str:
    """Return ``value`` when it is a plain decimal in (0, 1], else ``default``."""
    if not value or not _WIDTH_RE.match(value):
        return default
    number = float(value)
    if not math.isfinite(number) or number <= 0 or number > 1:
        return default
    return value


def _figure_to_tex(match: re.Match[str], default_width: str) -> list[str]:
    caption = match.group(1).strip()
    src = match.group(2).strip()
    attrs = parse_figure_attributes(match.group(3) or "")
    width = figure_width(attrs.get("width"), default_width)

    lines = [
        "\\begin{figure}[htbp]",
        "  \\centering",
        f"  \\includegraphics[width={width}\\linewidth]{{{src}}}",
    ]
    if caption:
        lines.append(f"  \\caption{{{caption}}}")
    if "label" in attrs:
        lines.append(f"  \\label{{{attrs['label']}}}")
    lines.append("\\end{figure}")
    return lines


# ---------------------------------------------------------------------------
# TeX -> Markdown
# ---------------------------------------------------------------------------

def tex_to_markdown(text: str) -> str:
    """Rewrite ``equation`` and ``figure`` environments and ``\\cite`` markers as markdown."""
    lines = normalize_newlines(text).split("\n")
    out: list[str] = []

    i = 0
    while i < len(lines):
        trimmed = lines[i].strip()

        if trimmed.startswith("\\begin{equation}"):
            body, i = _read_environment(lines, i, "equation")
            out.append("$$")
            out.append("\n".join(body).strip())
            out.append("$$")
            continue

        if trimmed.startswith("\\begin{figure}"):
            body, end = _read_environment(lines, i, "figure")
            figure = _figure_to_markdown("\n".join(body))
            if figure is not None:
                out.append(figure)
                i = end
                continue

        out.append(_CITE_TEX_RE.sub(_cite_to_markdown, lines[i]))
        i += 1

    return "\n".join(out)


def _read_environment(lines: list[str], start: int, env: str) -> tuple[list[str], int]:
    """Collect an environment body starting at ``lines[start]``; return it and the next index."""
    begin = f"\\begin{{{env}}}"
    end_token = f"\\end{{{env}}}"
    first = lines[start].strip()[len(begin):]
    if env == "figure":
        first = re.sub(r"^\[[^\]]*\]", "", first)

    if end_token in first:
        return [first[: first.index(end_token)].strip()], start + 1

    body = [first.strip()] if first.strip() else []
    i = start + 1
    while i < len(lines):
        pos = lines[i].find(end_token)
        if pos >= 0:
            head = lines[i][:pos]
            if head.strip():
                body.append(head.rstrip())
            return body, i + 1
        body.append(lines[i])
        i += 1
    return body, i


def _figure_to_markdown(body: str) -> str | None:
    graphic = _INCLUDEGRAPHICS_RE.search(body)
    if not graphic:
        return None

    caption = _command_argument(body, "caption") or ""
    label = _command_argument(body, "label")
    width_match = re.search(r"width\s*=\s*([0-9.]+)\\linewidth", graphic.group(1) or "")

    attrs = []
    if label:
        attrs.append(f"#{label}")
    if width_match:
        attrs.append(f"width={width_match.group(1)}")
    suffix = f"{{{' '.join(attrs)}}}" if attrs else ""
    return f"![{caption}]({graphic.group(2).strip()}){suffix}"


def _command_argument(text: str, command: str) -> str | None:
    match = re.search(rf"\\{command}\{{([^{{}}]*)\}}", text)
    return match.group(1).strip() if match else None


def _cite_to_markdown(match: re.Match[str]) -> str:
    keys = [k.strip() for k in match.group(1).split(",")]
    return "".join(f"[@{key}]" for key in keys)
