"""File-scope collaborators consulted by the import resolver."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

from peerdoc.parser.base import SourceFormat, infer_source_format
from peerdoc.paths import normalize_path

logger = logging.getLogger(__name__)

FileKind = Literal["file", "folder"]


@dataclass(frozen=True, slots=True)
class WorkspaceFile:
    kind: FileKind
    content: str = ""
    source_format: SourceFormat | None = None

    @property
    def is_file(self) -> bool:
        return self.kind == "file"


class FileScope(Protocol):
    async def lookup(self, path: str, owner: str | None = None) -> WorkspaceFile | None:  # pragma: no cover - structural protocol
        """Return the entry stored at a normalized path, or None when absent."""


class InMemoryFileScope:
    """Workspace held in a mapping of path to content.

    String values are files without a declared format. Every ancestor directory
    of a stored path is reported as a folder. A scope bound to ``owner`` answers
    only lookups made for that owner.
    """

    def __init__(self, files: Mapping[str, str | WorkspaceFile], owner: str | None = None) -> None:
        self.owner = owner
        self._entries: dict[str, WorkspaceFile] = {"/": WorkspaceFile(kind="folder")}
        for raw_path, value in files.items():
            path = normalize_path(raw_path)
            if path is None:
                raise ValueError(f"Invalid workspace path: {raw_path!r}")
            entry = value if isinstance(value, WorkspaceFile) else WorkspaceFile(kind="file", content=value)
            self._entries[path] = entry
            parent = path.rsplit("/", 1)[0]
            while parent:
                self._entries.setdefault(parent, WorkspaceFile(kind="folder"))
                parent = parent.rsplit("/", 1)[0]

    async def lookup(self, path: str, owner: str | None = None) -> WorkspaceFile | None:
        if self.owner is not None and owner != self.owner:
            return None
        return self._entries.get(path.rstrip("/") or "/")


class DirectoryFileScope:
    """Workspace backed by a directory on disk; the format comes from the extension."""

    def __init__(self, root: Path | str, owner: str | None = None) -> None:
        self.root = Path(root).resolve()
        self.owner = owner

    async def lookup(self, path: str, owner: str | None = None) -> WorkspaceFile | None:
        if self.owner is not None and owner != self.owner:
            return None
        return await asyncio.to_thread(self._read, path)

    def _read(self, path: str) -> WorkspaceFile | None:
        # Unreadable names (null bytes, overlong components) count as absent.
        try:
            target = (self.root / path.lstrip("/")).resolve()
            if target != self.root and self.root not in target.parents:
                return None
            if target.is_dir():
                return WorkspaceFile(kind="folder")
            if not target.is_file():
                return None
            content = target.read_text(encoding="utf-8", errors="ignore")
        except (OSError, ValueError) as exc:
            logger.debug("Lookup of %r failed: %s", path, exc)
            return None
        return WorkspaceFile(kind="file", content=content, source_format=infer_source_format(target.name))
