"""Source document engine for scholarly articles written in markdown or TeX."""

from .bibliography import BibliographyEntry, format_bibliography, parse_bibtex_entries
from .config import ExportConfig, ResolverConfig
from .exceptions import ConfigurationError, PeerDocError, UnsupportedFormatError
from .export import ExportResult, export_source, parse_source
from .imports import DiagnosticCode, ImportDiagnostic, ImportResolver, ResolveResult, resolve_imports
from .parser import Block, BlockKind, SourceFormat, parse_markdown, parse_tex
from .paths import normalize_path
from .renderer import render_markdown, render_tex
from .scope import DirectoryFileScope, InMemoryFileScope, WorkspaceFile

__version__ = "0.1.0"

__all__ = [
    "BibliographyEntry",
    "Block",
    "BlockKind",
    "ConfigurationError",
    "DiagnosticCode",
    "DirectoryFileScope",
    "ExportConfig",
    "ExportResult",
    "ImportDiagnostic",
    "ImportResolver",
    "InMemoryFileScope",
    "PeerDocError",
    "ResolveResult",
    "ResolverConfig",
    "SourceFormat",
    "UnsupportedFormatError",
    "WorkspaceFile",
    "export_source",
    "format_bibliography",
    "normalize_path",
    "parse_bibtex_entries",
    "parse_markdown",
    "parse_source",
    "parse_tex",
    "render_markdown",
    "render_tex",
    "resolve_imports",
]
