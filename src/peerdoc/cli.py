"""peerdoc CLI entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import click

from peerdoc.bibliography import extract_citation_keys, parse_bibtex_entries
from peerdoc.config import DEFAULT_MAX_DEPTH, ExportConfig, ResolverConfig
from peerdoc.exceptions import PeerDocError
from peerdoc.export import export_source
from peerdoc.imports import ImportResolver, ResolveResult
from peerdoc.parser.base import SourceFormat, infer_source_format
from peerdoc.parser.md_parser import MarkdownParser
from peerdoc.parser.tex_parser import TeXParser
from peerdoc.scope import DirectoryFileScope

_FORMAT_CHOICE = click.Choice(["markdown", "tex"], case_sensitive=False)

_root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Workspace root that import paths are relative to (default: the input's directory)",
)
_format_option = click.option(
    "--format",
    "source_format",
    type=_FORMAT_CHOICE,
    default=None,
    help="Source format (default: inferred from the file extension)",
)
_max_depth_option = click.option(
    "--max-depth",
    type=int,
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Maximum import nesting depth",
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Resolve, parse and convert scholarly documents written in markdown or TeX."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_root_option
@_format_option
@_max_depth_option
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None, help="Output path (default: stdout)")
@click.pass_context
def resolve(
    ctx: click.Context,
    input_path: Path,
    root: Path | None,
    source_format: str | None,
    max_depth: int,
    output: Path | None,
) -> None:
    """Inline every import directive in INPUT_PATH."""
    fmt = infer_source_format(input_path.name, source_format)
    result = _resolve_file(input_path, root, fmt, max_depth)

    if output is None:
        click.echo(result.resolved_text)
    else:
        _write(output, result.resolved_text)
        click.echo(f"Resolved: {output}")

    _echo_diagnostics(result)
    if result.diagnostics:
        ctx.exit(1)


@main.command("export")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--to",
    "target",
    type=click.Choice(["md", "markdown", "tex"], case_sensitive=False),
    required=True,
    help="Target syntax",
)
@click.option("--output", "-o", type=click.Path(path_type=Path), required=True, help="Output path")
@click.option("--bib", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="Project BibTeX file")
@_root_option
@_format_option
@_max_depth_option
def export_command(
    input_path: Path,
    target: str,
    output: Path,
    bib: Path | None,
    root: Path | None,
    source_format: str | None,
    max_depth: int,
) -> None:
    """Convert INPUT_PATH into a complete markdown or TeX document."""
    fmt = infer_source_format(input_path.name, source_format)
    resolved = _resolve_file(input_path, root, fmt, max_depth)
    _echo_diagnostics(resolved)

    entries = parse_bibtex_entries(bib.read_text(encoding="utf-8", errors="ignore")) if bib else []
    by_key = {entry.key: entry for entry in entries}
    cited = [by_key[key] for key in extract_citation_keys(resolved.resolved_text) if key in by_key]

    config = ExportConfig()
    try:
        result = export_source(resolved.resolved_text, fmt, target, cited, entries, config=config)
    except PeerDocError as exc:
        raise click.ClickException(str(exc)) from exc

    _write(output, result.content)
    click.echo(f"Exported: {output}")
    if result.bibliography_file:
        bib_path = output.parent / config.bibliography_filename
        _write(bib_path, result.bibliography_file + "\n")
        click.echo(f"Bibliography: {bib_path}")
    for warning in result.warnings:
        click.echo(f"warning: {warning}", err=True)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_format_option
def blocks(input_path: Path, source_format: str | None) -> None:
    """Print the block sequence of INPUT_PATH as JSON."""
    parser = _select_parser(input_path, source_format)
    parsed = parser.parse(input_path)
    click.echo(json.dumps([block.to_dict() for block in parsed], ensure_ascii=False, indent=2))


def _select_parser(input_path: Path, source_format: str | None):
    if infer_source_format(input_path.name, source_format) is SourceFormat.TEX:
        return TeXParser()
    return MarkdownParser()


def _resolve_file(input_path: Path, root: Path | None, fmt: SourceFormat, max_depth: int) -> ResolveResult:
    try:
        config = ResolverConfig(max_depth=max_depth)
    except PeerDocError as exc:
        raise click.ClickException(str(exc)) from exc

    scope = DirectoryFileScope(root or input_path.parent)
    text = input_path.read_text(encoding="utf-8", errors="ignore")
    return asyncio.run(ImportResolver(scope, config).resolve(text, fmt))


def _echo_diagnostics(result: ResolveResult) -> None:
    for diagnostic in result.diagnostics:
        click.echo(f"{diagnostic.code.value}: {diagnostic.path} ({diagnostic.message})", err=True)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


if __name__ == "__main__":  # pragma: no cover
    main()
