"""Edit batches and their atomic application to disk.

A ``WorkspaceEdit`` collects range replacements (grouped per file) and whole
file renames. ``apply_workspace_edit`` validates the whole batch before
touching anything, writes every edited file, then performs the renames.
A failure part way through restores what was already written.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from lsprotocol import types as lsp

from smalise.core.errors import EditError
from smalise.language.document import TextDocument

if TYPE_CHECKING:
    from smalise.index.documents import DocumentIndex

logger = structlog.get_logger()


@dataclass
class FileRename:
    """Move of a whole file."""

    old_path: Path
    new_path: Path


@dataclass
class WorkspaceEdit:
    """Text replacements and file renames that belong together."""

    text_edits: dict[Path, list[lsp.TextEdit]] = field(default_factory=dict)
    file_renames: list[FileRename] = field(default_factory=list)

    def replace(self, path: Path, range: lsp.Range, new_text: str) -> None:
        self.text_edits.setdefault(path, []).append(lsp.TextEdit(range=range, new_text=new_text))

    def rename_file(self, old_path: Path, new_path: Path) -> None:
        self.file_renames.append(FileRename(old_path=old_path, new_path=new_path))

    @property
    def is_empty(self) -> bool:
        return not self.text_edits and not self.file_renames

    @property
    def edit_count(self) -> int:
        return sum(len(edits) for edits in self.text_edits.values())

    def to_lsp(self) -> lsp.WorkspaceEdit:
        """Protocol form: document edits first, renames after."""
        changes: list[lsp.TextDocumentEdit | lsp.RenameFile] = [
            lsp.TextDocumentEdit(
                text_document=lsp.OptionalVersionedTextDocumentIdentifier(
                    uri=_uri(path), version=None
                ),
                edits=list(edits),
            )
            for path, edits in self.text_edits.items()
        ]
        changes.extend(
            lsp.RenameFile(old_uri=_uri(r.old_path), new_uri=_uri(r.new_path))
            for r in self.file_renames
        )
        return lsp.WorkspaceEdit(document_changes=changes)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly summary, positions 0-based."""
        return {
            "edits": [
                {
                    "path": str(path),
                    "range": _range_dict(edit.range),
                    "new_text": edit.new_text,
                }
                for path, edits in self.text_edits.items()
                for edit in edits
            ],
            "renames": [
                {"old_path": str(r.old_path), "new_path": str(r.new_path)}
                for r in self.file_renames
            ],
        }


@dataclass
class ApplyResult:
    """Outcome of applying a ``WorkspaceEdit``."""

    edit_id: str
    applied: bool
    dry_run: bool
    files_changed: list[Path] = field(default_factory=list)
    renames: list[FileRename] = field(default_factory=list)
    edit_count: int = 0


def _uri(path: Path) -> str:
    return path.absolute().as_uri()


def _range_dict(range: lsp.Range) -> dict[str, dict[str, int]]:
    return {
        "start": {"line": range.start.line, "character": range.start.character},
        "end": {"line": range.end.line, "character": range.end.character},
    }


def _key(position: lsp.Position) -> tuple[int, int]:
    return (position.line, position.character)


def _check_position(document: TextDocument, position: lsp.Position) -> None:
    if position.line >= document.line_count or position.character > len(
        document.line_at(position.line)
    ):
        raise EditError.out_of_bounds(str(document.path), position.line, position.character)


def apply_text_edits(document: TextDocument, edits: list[lsp.TextEdit]) -> str:
    """New text of ``document`` after ``edits``.

    Raises:
        EditError: An edit falls outside the document or two edits overlap.
    """
    ordered = sorted(edits, key=lambda e: (_key(e.range.start), _key(e.range.end)))
    for edit in ordered:
        _check_position(document, edit.range.start)
        _check_position(document, edit.range.end)
    for previous, current in zip(ordered, ordered[1:]):
        if _key(previous.range.end) > _key(current.range.start):
            raise EditError.overlapping(str(document.path), current.range.start.line)

    text = document.text
    # Back to front so earlier offsets stay valid
    for edit in reversed(ordered):
        start = document.offset_at(edit.range.start)
        end = document.offset_at(edit.range.end)
        text = text[:start] + edit.new_text + text[end:]
    return text


def apply_workspace_edit(
    edit: WorkspaceEdit,
    *,
    index: DocumentIndex | None = None,
    dry_run: bool = False,
) -> ApplyResult:
    """Apply ``edit`` to disk, all or nothing.

    Args:
        edit: Batch to apply. Text edits address files by their pre-rename path.
        index: Notified with the new contents and renames after success.
        dry_run: Validate only, don't write.

    Raises:
        EditError: Validation failed, or writing failed and was rolled back.
    """
    edit_id = uuid.uuid4().hex[:8]

    # Validate everything and stage new contents in memory
    originals: dict[Path, str] = {}
    staged: dict[Path, str] = {}
    for path, edits in edit.text_edits.items():
        if not path.is_file():
            raise EditError.file_not_found(str(path))
        try:
            text = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EditError.write_failed(str(path), str(e)) from e
        originals[path] = text
        staged[path] = apply_text_edits(TextDocument(path=path, text=text), edits)

    targets: set[Path] = set()
    for rename in edit.file_renames:
        if not rename.old_path.is_file():
            raise EditError.file_not_found(str(rename.old_path))
        if rename.new_path.exists() or rename.new_path in targets:
            raise EditError.target_exists(str(rename.old_path), str(rename.new_path))
        targets.add(rename.new_path)

    result = ApplyResult(
        edit_id=edit_id,
        applied=not dry_run,
        dry_run=dry_run,
        files_changed=list(staged),
        renames=list(edit.file_renames),
        edit_count=edit.edit_count,
    )
    if dry_run:
        logger.info("edit_dry_run", edit_id=edit_id, files=len(staged), renames=len(targets))
        return result

    written: list[Path] = []
    moved: list[FileRename] = []
    try:
        for path, text in staged.items():
            path.write_bytes(text.encode("utf-8"))
            written.append(path)
        for rename in edit.file_renames:
            rename.new_path.parent.mkdir(parents=True, exist_ok=True)
            rename.old_path.rename(rename.new_path)
            moved.append(rename)
    except OSError as e:
        logger.error("edit_failed", edit_id=edit_id, error=str(e))
        _rollback(originals, written, moved)
        raise EditError.write_failed(str(e.filename or ""), str(e)) from e

    if index is not None:
        for path, text in staged.items():
            index.on_changed(TextDocument(path=path, text=text))
        for rename in edit.file_renames:
            index.on_renamed(rename.old_path, rename.new_path)

    logger.info(
        "edit_applied",
        edit_id=edit_id,
        files=len(staged),
        edits=edit.edit_count,
        renames=len(edit.file_renames),
    )
    return result


def _rollback(originals: dict[Path, str], written: list[Path], moved: list[FileRename]) -> None:
    for rename in reversed(moved):
        try:
            rename.new_path.rename(rename.old_path)
        except OSError as e:
            logger.error("rollback_rename_failed", path=str(rename.new_path), error=str(e))
    for path in written:
        try:
            path.write_bytes(originals[path].encode("utf-8"))
        except OSError as e:
            logger.error("rollback_write_failed", path=str(path), error=str(e))
