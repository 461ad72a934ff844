"""Bulk loading of workspace smali files.

Discovery walks the workspace once; every discovered file is read and fed to
the index in batches of at most ``limit`` files, each batch fully awaited
before the next one starts. Per-file read failures are isolated. Whatever
happens, ``load_workspace`` resolves the index's readiness signal so that
queries waiting on it never hang.
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from smalise.config.constants import (
    HARDCODED_EXCLUDE_DIRS,
    LOADING_FILE_NUM_LIMIT,
    SMALI_EXTENSION,
)
from smalise.core.errors import LoadError
from smalise.index.documents import DocumentIndex
from smalise.language.document import TextDocument

logger = structlog.get_logger()

Opener = Callable[[Path], Awaitable[TextDocument]]
Handler = Callable[[TextDocument], Any]


@dataclass
class LoadResult:
    """Outcome of a bulk load."""

    discovered: int = 0
    loaded: int = 0
    failed: list[LoadError] = field(default_factory=list)
    duration_seconds: float = 0.0


def discover_smali_files(
    root: Path,
    exclude_dirs: Iterable[str] = (),
) -> list[Path]:
    """Walk ``root`` for source files, pruning excluded directories.

    Raises:
        LoadError: ``root`` is not a readable directory.
    """
    if not root.is_dir():
        raise LoadError.discovery_failed(str(root), "workspace root is not a directory")

    pruned = HARDCODED_EXCLUDE_DIRS | set(exclude_dirs)
    files: list[Path] = []

    def _skip(error: OSError) -> None:
        logger.warning("discovery_dir_skipped", path=error.filename, error=str(error))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_skip):
        dirnames[:] = sorted(d for d in dirnames if d not in pruned)
        for name in filenames:
            if name.endswith(SMALI_EXTENSION):
                files.append(Path(dirpath) / name)
    return sorted(files)


async def read_document(path: Path) -> TextDocument:
    """Read a file as UTF-8 in a worker thread."""
    text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    return TextDocument(path=path, text=text)


async def _open_and_handle(path: Path, opener: Opener, handler: Handler) -> None:
    document = await opener(path)
    handler(document)


async def load_documents(
    paths: Sequence[Path],
    handler: Handler,
    *,
    opener: Opener = read_document,
    limit: int = LOADING_FILE_NUM_LIMIT,
) -> LoadResult:
    """Open ``paths`` and feed each document to ``handler``.

    At most ``limit`` files are in flight; each batch completes before the
    next one is started.
    """
    result = LoadResult(discovered=len(paths))
    start = time.monotonic()

    for offset in range(0, len(paths), limit):
        batch = paths[offset : offset + limit]
        outcomes = await asyncio.gather(
            *(_open_and_handle(path, opener, handler) for path in batch),
            return_exceptions=True,
        )
        for path, outcome in zip(batch, outcomes, strict=True):
            if isinstance(outcome, (OSError, UnicodeDecodeError)):
                error = LoadError.open_failed(str(path), str(outcome))
                result.failed.append(error)
                logger.warning("document_open_failed", path=str(path), error=str(outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.loaded += 1

    result.duration_seconds = time.monotonic() - start
    return result


async def load_workspace(
    index: DocumentIndex,
    root: Path,
    *,
    exclude_dirs: Iterable[str] = (),
    opener: Opener = read_document,
    limit: int = LOADING_FILE_NUM_LIMIT,
) -> LoadResult:
    """Discover and index every smali file under ``root``.

    The index is marked ready when this returns or raises.

    Raises:
        LoadError: Discovery failed.
    """
    try:
        paths = discover_smali_files(root, exclude_dirs)
        logger.info("workspace_discovered", root=str(root), files=len(paths))
        result = await load_documents(paths, index.open, opener=opener, limit=limit)
        logger.info(
            "workspace_loaded",
            root=str(root),
            classes=len(index),
            loaded=result.loaded,
            failed=len(result.failed),
            duration=f"{result.duration_seconds:.2f}s",
        )
        return result
    finally:
        index.mark_ready()
