"""File watcher that keeps a workspace index live.

Design:
- ``watchfiles.awatch`` watches the workspace root recursively
- Only ``.smali`` files outside excluded directories pass the filter
- watchfiles batches rapid changes (``debounce_ms``) before yielding them
- A deleted path and an added file declaring the same class are a move
  and are applied as a rename, so the moved file keeps ownership of its
  class even when another file declares it too
- Remaining deletions are applied next, then additions, then modifications
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from watchfiles import Change, awatch

from smalise.config.constants import HARDCODED_EXCLUDE_DIRS, SMALI_EXTENSION
from smalise.index.loader import load_documents, read_document
from smalise.language.document import TextDocument
from smalise.language.parser import find_class_name

if TYPE_CHECKING:
    from smalise.workspace import SmaliWorkspace

logger = structlog.get_logger()


@dataclass
class ChangeBatch:
    """Paths from one watcher batch, grouped by kind."""

    deleted: list[Path] = field(default_factory=list)
    added: list[Path] = field(default_factory=list)
    modified: list[Path] = field(default_factory=list)

    @classmethod
    def from_changes(cls, changes: Iterable[tuple[Change, str]]) -> ChangeBatch:
        batch = cls()
        for change, raw_path in sorted(changes, key=lambda c: c[1]):
            path = Path(raw_path)
            if change == Change.deleted:
                batch.deleted.append(path)
            elif change == Change.added:
                batch.added.append(path)
            else:
                batch.modified.append(path)
        return batch

    def __len__(self) -> int:
        return len(self.deleted) + len(self.added) + len(self.modified)


class SmaliWatcher:
    """Feeds file-system changes under a workspace root into its index."""

    def __init__(
        self,
        workspace: SmaliWorkspace,
        *,
        on_batch: Callable[[ChangeBatch], None] | None = None,
    ) -> None:
        self._workspace = workspace
        self._on_batch = on_batch
        self._excluded = HARDCODED_EXCLUDE_DIRS | set(workspace.config.index.exclude_dirs)
        self._stop_event = asyncio.Event()
        self._watch_task: asyncio.Task[None] | None = None

    def accepts(self, change: Change, path: str) -> bool:
        """watchfiles filter: smali files outside excluded directories."""
        if not path.endswith(SMALI_EXTENSION):
            return False
        try:
            relative = Path(path).relative_to(self._workspace.root)
        except ValueError:
            return False
        return not any(part in self._excluded for part in relative.parts[:-1])

    async def start(self) -> None:
        """Start watching in a background task."""
        if self._watch_task is not None:
            return
        self._stop_event.clear()
        self._watch_task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None
        logger.info("file_watcher_stopped")

    async def run(self) -> None:
        """Watch until stopped, dispatching every batch."""
        config = self._workspace.config.watcher
        root = self._workspace.root
        logger.info("file_watcher_started", root=str(root), debounce_ms=config.debounce_ms)
        async for changes in awatch(
            root,
            watch_filter=self.accepts,
            debounce=config.debounce_ms,
            step=config.step_ms,
            stop_event=self._stop_event,
            recursive=True,
            ignore_permission_denied=True,
        ):
            await self.dispatch(changes)

    async def dispatch(self, changes: Iterable[tuple[Change, str]]) -> ChangeBatch:
        """Apply one batch of raw watchfiles changes to the index."""
        batch = ChangeBatch.from_changes(changes)
        if not batch:
            return batch

        index = self._workspace.index
        await index.wait_until_ready()

        added: list[TextDocument] = []
        if batch.added:
            await load_documents(
                batch.added,
                added.append,
                limit=self._workspace.config.index.load_concurrency,
            )

        deleted = list(batch.deleted)
        for old_path, document in self._moves(deleted, added):
            index.on_renamed(old_path, document.path)
            deleted.remove(old_path)
            logger.debug("move_detected", old_path=str(old_path), new_path=str(document.path))

        for path in deleted:
            index.on_deleted(path)

        for document in added:
            index.on_changed(document)

        for path in batch.modified:
            try:
                document = await read_document(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("document_read_failed", path=str(path), error=str(e))
                continue
            index.on_changed(document)

        logger.info(
            "changes_applied",
            deleted=len(batch.deleted),
            added=len(batch.added),
            modified=len(batch.modified),
            classes=len(index),
        )
        if self._on_batch is not None:
            self._on_batch(batch)
        return batch

    def _moves(
        self, deleted: list[Path], added: list[TextDocument]
    ) -> list[tuple[Path, TextDocument]]:
        """Pair deleted paths with added documents declaring the same class."""
        index = self._workspace.index
        parked = index.conflicts()
        gone: dict[str, Path] = {}
        # Owners first, so a moved owner is never mistaken for a parked duplicate
        for lookup in (index.identifier_for, parked.get):
            for path in deleted:
                identifier = lookup(path)
                if identifier is not None:
                    gone.setdefault(identifier, path)

        moves: list[tuple[Path, TextDocument]] = []
        for document in added:
            identifier = find_class_name(document)
            old_path = gone.pop(identifier, None) if identifier is not None else None
            if old_path is not None:
                moves.append((old_path, document))
        return moves
