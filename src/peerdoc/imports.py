"""Recursive transclusion of ``{{import: path}}`` and ``\\input{path}`` directives.

Resolution never raises for a broken directive. The directive text is kept in
place and an :class:`ImportDiagnostic` is recorded, so callers always get a
complete document plus the list of failures.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from peerdoc.config import ResolverConfig
from peerdoc.parser.base import SourceFormat
from peerdoc.paths import normalize_path
from peerdoc.scope import FileScope

logger = logging.getLogger(__name__)


class DiagnosticCode(str, Enum):
    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    NOT_FILE = "not_file"
    CYCLE = "cycle"
    MAX_DEPTH = "max_depth"


_MESSAGES = {
    DiagnosticCode.INVALID_PATH: "Import path is invalid",
    DiagnosticCode.NOT_FOUND: "Import target not found",
    DiagnosticCode.NOT_FILE: "Import target is not a file",
    DiagnosticCode.CYCLE: "Cyclic import detected",
    DiagnosticCode.MAX_DEPTH: "Import nesting exceeded max depth",
}


@dataclass(frozen=True, slots=True)
class ImportDiagnostic:
    code: DiagnosticCode
    path: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "path": self.path, "message": self.message}


@dataclass(slots=True)
class ResolveResult:
    resolved_text: str
    diagnostics: list[ImportDiagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


# ---------------------------------------------------------------------------
# Directive scanning
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DirectiveMatch:
    start: int
    end: int
    raw_path: str
    literal: str


@dataclass(frozen=True, slots=True)
class Directive:
    """A transclusion marker of the form ``<opener><path><closer>``.

    The path runs up to the first ``}`` and must be non-empty; the closer has
    to start exactly there.
    """

    name: str
    opener: str
    closer: str

    def scan(self, text: str) -> Iterator[DirectiveMatch]:
        """Yield non-overlapping matches from left to right, leftmost first."""
        cursor = 0
        while True:
            start = text.find(self.opener, cursor)
            if start == -1:
                return
            path_start = start + len(self.opener)
            brace = text.find("}", path_start)
            if brace == -1:
                return
            if brace > path_start and text.startswith(self.closer, brace):
                end = brace + len(self.closer)
                yield DirectiveMatch(start, end, text[path_start:brace], text[start:end])
                cursor = end
            else:
                cursor = start + 1


IMPORT_DIRECTIVE = Directive("import", "{{import:", "}}")
INPUT_DIRECTIVE = Directive("input", "\\input{", "}")

_DIRECTIVE_ORDER = {
    SourceFormat.MARKDOWN: (IMPORT_DIRECTIVE, INPUT_DIRECTIVE),
    SourceFormat.TEX: (INPUT_DIRECTIVE, IMPORT_DIRECTIVE),
}


def directives_for(source_format: SourceFormat | str) -> tuple[Directive, ...]:
    """Native directive first, the other format's directive second."""
    return _DIRECTIVE_ORDER[SourceFormat.coerce(source_format)]


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class _ResolutionContext:
    owner: str | None
    depth: int
    stack: tuple[str, ...]
    diagnostics: list[ImportDiagnostic]

    def descend(self, path: str) -> _ResolutionContext:
        return _ResolutionContext(self.owner, self.depth + 1, (*self.stack, path), self.diagnostics)


class ImportResolver:
    """Inline directive targets looked up in a :class:`FileScope`.

    Each top-level :meth:`resolve` call owns its own ancestor stack and
    diagnostics list; the resolver itself holds no per-call state.
    """

    def __init__(self, scope: FileScope, config: ResolverConfig | None = None) -> None:
        self.scope = scope
        self.config = config or ResolverConfig()

    async def resolve(
        self,
        text: str,
        source_format: SourceFormat | str,
        owner: str | None = None,
    ) -> ResolveResult:
        context = _ResolutionContext(owner=owner, depth=0, stack=(), diagnostics=[])
        resolved = await self._resolve_text(text, SourceFormat.coerce(source_format), context)
        return ResolveResult(resolved_text=resolved, diagnostics=context.diagnostics)

    async def _resolve_text(self, text: str, source_format: SourceFormat, context: _ResolutionContext) -> str:
        # Each pass scans the output of the previous one.
        for directive in directives_for(source_format):
            text = await self._resolve_directive(text, directive, source_format, context)
        return text

    async def _resolve_directive(
        self,
        text: str,
        directive: Directive,
        source_format: SourceFormat,
        context: _ResolutionContext,
    ) -> str:
        out: list[str] = []
        cursor = 0
        for match in directive.scan(text):
            out.append(text[cursor:match.start])
            out.append(await self._expand(match, source_format, context))
            cursor = match.end
        out.append(text[cursor:])
        return "".join(out)

    async def _expand(self, match: DirectiveMatch, source_format: SourceFormat, context: _ResolutionContext) -> str:
        path = normalize_path(match.raw_path)
        if path is None:
            self._report(context, DiagnosticCode.INVALID_PATH, match.raw_path)
            return match.literal

        if context.depth >= self.config.max_depth:
            self._report(context, DiagnosticCode.MAX_DEPTH, path)
            return match.literal

        if path in context.stack:
            self._report(context, DiagnosticCode.CYCLE, path)
            return match.literal

        entry = await self.scope.lookup(path, context.owner)
        if entry is None:
            self._report(context, DiagnosticCode.NOT_FOUND, path)
            return match.literal
        if not entry.is_file:
            self._report(context, DiagnosticCode.NOT_FILE, path)
            return match.literal

        # Content is spliced as-is even when the target uses the other syntax.
        child_format = entry.source_format or source_format
        resolved = await self._resolve_text(entry.content or "", child_format, context.descend(path))
        logger.debug("Inlined %s (%s, depth %d)", path, child_format.value, context.depth + 1)
        return resolved

    def _report(self, context: _ResolutionContext, code: DiagnosticCode, path: str) -> None:
        diagnostic = ImportDiagnostic(code=code, path=path, message=_MESSAGES[code])
        context.diagnostics.append(diagnostic)
        if code is DiagnosticCode.INVALID_PATH:
            logger.warning("Rejected import path %r", path)
        else:
            logger.info("%s: %s", diagnostic.message, path)


async def resolve_imports(
    text: str,
    source_format: SourceFormat | str,
    scope: FileScope,
    owner: str | None = None,
    *,
    config: ResolverConfig | None = None,
) -> ResolveResult:
    """Resolve every directive in ``text`` against ``scope``."""
    return await ImportResolver(scope, config).resolve(text, source_format, owner)
