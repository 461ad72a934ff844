"""Document index: file -> class identifier -> authoritative Class.

Two mappings are kept in lockstep:

- ``_files``: file path -> identifier of the class that file declares
- ``_classes``: identifier -> the authoritative ``Class`` entity

Invariant: for every ``(path, identifier)`` in ``_files``,
``_classes[identifier].path == path``. A file whose class identifier is
already owned by another file is parked in ``_conflicts`` with an error
diagnostic and never enters either mapping. When the owner lets go of the
identifier, the earliest parked file declaring it takes over.

All mutators are synchronous, so index updates never interleave.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path

import structlog
from lsprotocol import types as lsp

from smalise.config.constants import SMALI_LANGUAGE_ID
from smalise.core.diagnostics import DiagnosticCollection, diagnostic_from_error, make_diagnostic
from smalise.core.errors import ConflictError, ParseError
from smalise.language.document import TextDocument
from smalise.language.parser import parse_smali_document
from smalise.language.structs import Class

logger = structlog.get_logger()


class DocumentIndex:
    """Authoritative class records for a workspace."""

    def __init__(self, diagnostics: DiagnosticCollection | None = None) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollection()
        self._files: dict[Path, str] = {}
        self._classes: dict[str, Class] = {}
        self._conflicts: dict[Path, Class] = {}
        self._ready = asyncio.Event()

    # -- readiness -----------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark_ready(self) -> None:
        """Release every query waiting for the initial load."""
        self._ready.set()

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    def begin_loading(self) -> None:
        """Hold queries back until the next ``mark_ready``.

        A signal that is still unset is kept, so nothing already waiting on it
        is stranded.
        """
        if self._ready.is_set():
            self._ready = asyncio.Event()

    # -- queries -------------------------------------------------------------

    async def lookup(self, identifier: str | None) -> Class | None:
        """Authoritative class for ``identifier`` once the index is warm."""
        if not identifier:
            return None
        await self.wait_until_ready()
        return self._classes.get(identifier)

    def get(self, identifier: str) -> Class | None:
        return self._classes.get(identifier)

    def identifier_for(self, path: Path) -> str | None:
        return self._files.get(path)

    def records(self) -> list[tuple[Path, str]]:
        return list(self._files.items())

    def classes(self) -> Iterator[Class]:
        yield from list(self._classes.values())

    def conflicts(self) -> dict[Path, str]:
        """Files currently rejected, with the identifier they collide on."""
        return {path: jclass.identifier for path, jclass in self._conflicts.items()}

    def __len__(self) -> int:
        return len(self._classes)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._classes

    # -- events --------------------------------------------------------------

    def open(self, document: TextDocument) -> Class | None:
        """Index a document, reusing the cached entity when it is still current."""
        if document.language_id != SMALI_LANGUAGE_ID:
            return None

        identifier = self._files.get(document.path)
        if identifier is not None:
            jclass = self._classes.get(identifier)
            if jclass is not None and jclass.path == document.path:
                return jclass

        return self._install(document)

    def on_changed(self, document: TextDocument) -> Class | None:
        """Reparse a document whose text changed."""
        if document.language_id != SMALI_LANGUAGE_ID:
            return None
        return self._install(document)

    def on_renamed(self, old_path: Path, new_path: Path) -> None:
        self.diagnostics.move(old_path, new_path)

        identifier = self._files.pop(old_path, None)
        if identifier is not None:
            self._files[new_path] = identifier
            jclass = self._classes.get(identifier)
            if jclass is not None:
                jclass.path = new_path

        parked = self._conflicts.pop(old_path, None)
        if parked is not None:
            parked.path = new_path
            self._conflicts[new_path] = parked

        logger.debug("document_renamed", old_path=str(old_path), new_path=str(new_path))

    def on_deleted(self, path: Path) -> None:
        self.diagnostics.delete(path)
        self._evict(path)
        logger.debug("document_deleted", path=str(path))

    def clear(self) -> None:
        """Forget every record. Readiness is left as it is."""
        self._files.clear()
        self._classes.clear()
        self._conflicts.clear()
        self.diagnostics.clear()

    # -- internals -----------------------------------------------------------

    def _parse(self, document: TextDocument) -> Class | None:
        self.diagnostics.delete(document.path)
        try:
            return parse_smali_document(document)
        except ParseError as e:
            self.diagnostics.set(document.path, [diagnostic_from_error(e)])
            logger.info("parse_failed", path=str(document.path), error=e.message)
        except Exception as e:
            self.diagnostics.set(
                document.path,
                [make_diagnostic(f"Unexpected error: {e}", lsp.DiagnosticSeverity.Error)],
            )
            logger.exception("parse_crashed", path=str(document.path))
        return None

    def _install(self, document: TextDocument) -> Class | None:
        path = document.path
        jclass = self._parse(document)
        if jclass is None:
            self._evict(path)
            return None

        identifier = jclass.identifier
        owner = self._classes.get(identifier)
        if owner is not None and owner.path != path:
            self._evict(path)
            self._conflicts[path] = jclass
            error = ConflictError.duplicate_class(identifier, str(owner.path), str(path))
            self.diagnostics.set(path, [diagnostic_from_error(error)])
            logger.warning(
                "class_conflict",
                identifier=identifier,
                path=str(path),
                owner=str(owner.path),
            )
            return None

        previous = self._files.get(path)
        if previous is not None and previous != identifier:
            self._release(previous, path)
        self._conflicts.pop(path, None)
        self._files[path] = identifier
        self._classes[identifier] = jclass
        return jclass

    def _evict(self, path: Path) -> None:
        """Forget everything recorded for ``path``."""
        self._conflicts.pop(path, None)
        identifier = self._files.pop(path, None)
        if identifier is not None:
            self._release(identifier, path)

    def _release(self, identifier: str, path: Path) -> None:
        """Drop ``identifier``'s entity if ``path`` still owns it."""
        jclass = self._classes.get(identifier)
        if jclass is None or jclass.path != path:
            return
        del self._classes[identifier]
        if self._files.get(path) == identifier:
            del self._files[path]
        self._promote(identifier)

    def _promote(self, identifier: str) -> None:
        """Hand a freed identifier to the earliest parked file declaring it."""
        for path, jclass in self._conflicts.items():
            if jclass.identifier == identifier:
                del self._conflicts[path]
                self._files[path] = identifier
                self._classes[identifier] = jclass
                self.diagnostics.delete(path)
                logger.info("class_conflict_resolved", identifier=identifier, path=str(path))
                return
