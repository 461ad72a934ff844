"""Workspace session: one index per workspace root.

``SmaliWorkspace`` wires the diagnostics collection, the document index,
reference search and the rename engine together and owns the background
bulk load. Queries issued while the load is running wait for it.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from pathlib import Path

import structlog
from lsprotocol import types as lsp

from smalise.config.models import SmaliseConfig
from smalise.core.diagnostics import DiagnosticCollection
from smalise.core.errors import InternalError, LoadError, SmaliseError
from smalise.index.documents import DocumentIndex
from smalise.index.loader import LoadResult, load_workspace
from smalise.index.search import Location, ReferenceSearch
from smalise.language.document import TextDocument
from smalise.refactor.edits import ApplyResult, WorkspaceEdit, apply_workspace_edit
from smalise.refactor.rename import RenameEngine, prepare_rename

logger = structlog.get_logger()


class SmaliWorkspace:
    """Index, search and rename for the smali files under ``root``."""

    def __init__(self, root: Path, config: SmaliseConfig | None = None) -> None:
        self.root = root.resolve()
        self.config = config or SmaliseConfig()
        self.diagnostics = DiagnosticCollection()
        self.index = DocumentIndex(self.diagnostics)
        self.search = ReferenceSearch(self.index)
        self.engine = RenameEngine(self.index, self.search)
        self.load_result: LoadResult | None = None
        self.load_error: SmaliseError | None = None
        self._load_task: asyncio.Task[None] | None = None

    @property
    def is_active(self) -> bool:
        return self._load_task is not None

    async def activate(self) -> None:
        """Start indexing the workspace in the background."""
        if self.is_active:
            return
        self.load_result = None
        self.load_error = None
        self.index.begin_loading()
        self._load_task = asyncio.create_task(self._load())
        logger.info("workspace_activated", root=str(self.root))

    async def deactivate(self) -> None:
        """Stop loading and drop everything indexed.

        Queries issued afterwards return at once with empty results.
        """
        if self._load_task is not None:
            if not self._load_task.done():
                self._load_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._load_task
            self._load_task = None
        self.index.clear()
        self.index.mark_ready()
        logger.info("workspace_deactivated", root=str(self.root))

    async def ready(self) -> None:
        """Wait until the initial load has finished (or failed)."""
        await self.index.wait_until_ready()

    async def _load(self) -> None:
        try:
            self.load_result = await load_workspace(
                self.index,
                self.root,
                exclude_dirs=self.config.index.exclude_dirs,
                limit=self.config.index.load_concurrency,
            )
        except LoadError as e:
            self.load_error = e
            logger.error("workspace_load_failed", root=str(self.root), error=e.message)
        except Exception as e:
            self.load_error = InternalError.unexpected(str(e), root=str(self.root))
            logger.exception("workspace_load_crashed", root=str(self.root))

    def resolve(self, path: Path) -> Path:
        """Absolute form of ``path``, relative paths taken from the root."""
        return (path if path.is_absolute() else self.root / path).resolve()

    def document(self, path: Path) -> TextDocument:
        """Current on-disk text of ``path``."""
        resolved = self.resolve(path)
        return TextDocument(path=resolved, text=resolved.read_text(encoding="utf-8"))

    def prepare_rename(
        self, document: TextDocument, position: lsp.Position
    ) -> tuple[lsp.Range, str] | None:
        return prepare_rename(document, position)

    async def rename(
        self, document: TextDocument, position: lsp.Position, new_name: str
    ) -> WorkspaceEdit:
        return await self.engine.rename(document, position, new_name)

    def apply(self, edit: WorkspaceEdit, *, dry_run: bool = False) -> ApplyResult:
        """Write ``edit`` to disk and update the index to match."""
        return apply_workspace_edit(edit, index=self.index, dry_run=dry_run)

    async def references(self, symbols: Sequence[str]) -> list[list[Location]]:
        return await self.search.search(symbols)
