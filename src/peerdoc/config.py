"""
Configuration for import resolution and document export.

All options have defaults; build a config only to change them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from .exceptions import ConfigurationError

DEFAULT_MAX_DEPTH = 5


@dataclass(frozen=True)
class ResolverConfig:
    """
    Limits for recursive import resolution.

    Example:
        >>> resolver = ImportResolver(scope, ResolverConfig(max_depth=2))
    """

    # Directives found at this depth or deeper are left untouched.
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self):
        if not isinstance(self.max_depth, int) or self.max_depth < 0:
            raise ConfigurationError(f"max_depth must be >= 0, got {self.max_depth!r}")


@dataclass(frozen=True)
class ExportConfig:
    """
    Options for full-document assembly.

    Example:
        >>> export_source(text, "markdown", "tex", [], config=ExportConfig(bibliography_style="plain"))
    """

    # Sibling .bib file named in markdown front matter and in \bibliography{stem}
    bibliography_filename: str = "references.bib"
    bibliography_style: str = "ieeetr"

    # Used when a figure's width attribute is missing or outside (0, 1]
    default_figure_width: str = "0.8"

    def __post_init__(self):
        name = self.bibliography_filename.strip()
        if not name or not name.endswith(".bib"):
            raise ConfigurationError(
                f"bibliography_filename must name a .bib file, got {self.bibliography_filename!r}"
            )
        if not self.bibliography_style.strip():
            raise ConfigurationError("bibliography_style must not be empty")

        # Deferred: the renderer package imports this module.
        from .renderer.content import figure_width

        width = self.default_figure_width
        if not width or figure_width(width, default="") != width:
            raise ConfigurationError(
                f"default_figure_width must be a decimal in (0, 1], got {self.default_figure_width!r}"
            )

    @property
    def bibliography_stem(self) -> str:
        return PurePosixPath(self.bibliography_filename.strip()).stem
