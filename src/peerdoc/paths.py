"""Canonical form for transclusion target paths."""

from __future__ import annotations

import re

_REPEATED_SEPARATORS = re.compile(r"/{2,}")


def normalize_path(raw_path: str) -> str | None:
    """Return the absolute workspace path for ``raw_path``, or None when it is rejected.

    Backslashes become forward slashes and repeated separators collapse. Empty
    paths and any path containing ``..`` are rejected so a directive can never
    reach outside the workspace root.
    """
    trimmed = raw_path.strip()
    if not trimmed:
        return None

    normalized = _REPEATED_SEPARATORS.sub("/", trimmed.replace("\\", "/"))
    if ".." in normalized:
        return None

    return normalized if normalized.startswith("/") else f"/{normalized}"
