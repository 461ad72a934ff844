"""Symbol-aware rename across a smali workspace.

Two phases. ``classify`` decides what the cursor is on (first match wins):

1. ``TypeTarget``: a class descriptor ``L...;``
2. ``FieldDeclTarget``: the name in a ``.field`` line
3. ``MethodDeclTarget``: the name in a ``.method`` line
4. ``FieldRefTarget``: the member name of ``owner->name:Type``
5. ``MethodRefTarget``: the member name of ``owner->name(params)ret``

``RenameEngine.apply`` then turns the target and a new name into a
``WorkspaceEdit``. Cross-file occurrences are found by literal search of the
full descriptor or the qualified ``owner->member`` text, so a field named
``count`` in an unrelated class is never touched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import structlog
from lsprotocol import types as lsp

from smalise.config.constants import SMALI_EXTENSION
from smalise.core.errors import RenameError
from smalise.index.documents import DocumentIndex
from smalise.index.search import ReferenceSearch
from smalise.language.document import TextDocument
from smalise.language.parser import (
    CLASS_DESCRIPTOR_RE,
    find_class_name,
    find_field_definition,
    find_field_reference,
    find_method_definition,
    find_method_reference,
    find_type,
)
from smalise.language.structs import Field, Method, Name, Type, qualified
from smalise.refactor.edits import WorkspaceEdit

logger = structlog.get_logger()

_MEMBER_NAME_RE = re.compile(r"[^\s:();]+")


@dataclass
class TypeTarget:
    type: Type


@dataclass
class FieldDeclTarget:
    path: Path
    owner: str
    field: Field


@dataclass
class MethodDeclTarget:
    path: Path
    owner: str
    method: Method


@dataclass
class FieldRefTarget:
    owner: Type
    field: Field


@dataclass
class MethodRefTarget:
    owner: Type
    method: Method


RenameTarget = TypeTarget | FieldDeclTarget | MethodDeclTarget | FieldRefTarget | MethodRefTarget


def classify(document: TextDocument, position: lsp.Position) -> RenameTarget | None:
    """What a rename at ``position`` would act on, or None."""
    jtype = find_type(document, position)
    if jtype is not None:
        return TypeTarget(type=jtype)

    owner = find_class_name(document)
    if owner is not None:
        field = find_field_definition(document, position)
        if field is not None:
            return FieldDeclTarget(path=document.path, owner=owner, field=field)
        method = find_method_definition(document, position)
        if method is not None:
            return MethodDeclTarget(path=document.path, owner=owner, method=method)

    ref_owner, ref_field = find_field_reference(document, position)
    if ref_owner is not None and ref_field is not None:
        return FieldRefTarget(owner=ref_owner, field=ref_field)

    ref_owner, ref_method = find_method_reference(document, position)
    if ref_owner is not None and ref_method is not None:
        return MethodRefTarget(owner=ref_owner, method=ref_method)

    return None


def _symbol(target: RenameTarget) -> Name:
    if isinstance(target, TypeTarget):
        return target.type
    if isinstance(target, (FieldDeclTarget, FieldRefTarget)):
        return target.field.name
    return target.method.name


def prepare(target: RenameTarget) -> tuple[lsp.Range, str]:
    """Range and current text of the symbol under the cursor."""
    name = _symbol(target)
    return name.range, name.text


def prepare_rename(
    document: TextDocument, position: lsp.Position
) -> tuple[lsp.Range, str] | None:
    target = classify(document, position)
    return prepare(target) if target is not None else None


def validate_new_name(target: RenameTarget, new_name: str) -> None:
    """Raise RenameError if ``new_name`` cannot replace ``target``'s text."""
    if isinstance(target, TypeTarget):
        if not CLASS_DESCRIPTOR_RE.fullmatch(new_name):
            raise RenameError.invalid_name(new_name, "expected a class descriptor like Lpkg/Name;")
        return
    if not _MEMBER_NAME_RE.fullmatch(new_name) or "->" in new_name:
        raise RenameError.invalid_name(
            new_name, "member names cannot contain whitespace, ':', '(', ')', ';' or '->'"
        )


def annotation_literal(descriptor: str) -> str:
    """``Lpkg/Name;`` as written in annotation values: ``"Lpkg/Name"``."""
    return f'"{descriptor[:-1]}"'


def descriptor_path(descriptor: str) -> PurePosixPath:
    """Relative file path a class descriptor lives at, e.g. ``pkg/Name.smali``."""
    return PurePosixPath(descriptor[1:-1] + SMALI_EXTENSION)


def renamed_file_path(path: Path, old: str, new: str) -> Path | None:
    """Where ``path`` moves when its class goes from ``old`` to ``new``.

    None if ``path`` does not end with the location derived from ``old``.
    """
    old_parts = descriptor_path(old).parts
    if len(path.parts) < len(old_parts) or path.parts[-len(old_parts) :] != old_parts:
        return None
    base = Path(*path.parts[: -len(old_parts)])
    return base.joinpath(*descriptor_path(new).parts)


class RenameEngine:
    """Builds rename edit batches from the index and literal search."""

    def __init__(self, index: DocumentIndex, search: ReferenceSearch) -> None:
        self._index = index
        self._search = search

    async def rename(
        self, document: TextDocument, position: lsp.Position, new_name: str
    ) -> WorkspaceEdit:
        """Edits renaming the symbol at ``position``; empty when there is none."""
        target = classify(document, position)
        if target is None:
            logger.debug(
                "rename_unclassified",
                path=str(document.path),
                line=position.line,
                character=position.character,
            )
            return WorkspaceEdit()
        return await self.apply(target, new_name)

    async def apply(self, target: RenameTarget, new_name: str) -> WorkspaceEdit:
        """Edits renaming ``target`` to ``new_name``.

        Raises:
            RenameError: ``new_name`` is not valid for this kind of symbol.
        """
        validate_new_name(target, new_name)
        edit = WorkspaceEdit()
        old_name = _symbol(target).text
        if new_name == old_name:
            return edit

        if isinstance(target, TypeTarget):
            await self._rename_type(edit, target.type.identifier, new_name)
        elif isinstance(target, FieldDeclTarget):
            edit.replace(target.path, target.field.name.range, new_name)
            await self._rewrite_references(
                edit,
                qualified(target.owner, target.field.identifier()),
                qualified(target.owner, target.field.identifier(new_name)),
            )
        elif isinstance(target, MethodDeclTarget):
            edit.replace(target.path, target.method.name.range, new_name)
            await self._rewrite_references(
                edit,
                qualified(target.owner, target.method.identifier()),
                qualified(target.owner, target.method.identifier(new_name)),
            )
        elif isinstance(target, FieldRefTarget):
            owner = target.owner.identifier
            jclass = await self._index.lookup(owner)
            if jclass is not None:
                for field in jclass.find_fields(target.field):
                    edit.replace(jclass.path, field.name.range, new_name)
            await self._rewrite_references(
                edit,
                qualified(owner, target.field.identifier()),
                qualified(owner, target.field.identifier(new_name)),
            )
        else:
            owner = target.owner.identifier
            jclass = await self._index.lookup(owner)
            if jclass is not None:
                for method in jclass.find_methods(target.method):
                    edit.replace(jclass.path, method.name.range, new_name)
            await self._rewrite_references(
                edit,
                qualified(owner, target.method.identifier()),
                qualified(owner, target.method.identifier(new_name)),
            )

        logger.info(
            "rename_planned",
            kind=type(target).__name__,
            old=old_name,
            new=new_name,
            edits=edit.edit_count,
            files=len(edit.text_edits),
            renames=len(edit.file_renames),
        )
        return edit

    async def _rename_type(self, edit: WorkspaceEdit, old: str, new: str) -> None:
        bare, literal = await self._search.search([old, annotation_literal(old)])
        for location in bare:
            edit.replace(location.path, location.range, new)
        for location in literal:
            edit.replace(location.path, location.range, annotation_literal(new))

        jclass = await self._index.lookup(old)
        if jclass is None:
            logger.info("file_rename_skipped", identifier=old, reason="class not indexed")
            return
        new_path = renamed_file_path(jclass.path, old, new)
        if new_path is None:
            logger.info(
                "file_rename_skipped",
                identifier=old,
                path=str(jclass.path),
                reason="file is not at its descriptor path",
            )
            return
        edit.rename_file(jclass.path, new_path)

    async def _rewrite_references(self, edit: WorkspaceEdit, old: str, new: str) -> None:
        (found,) = await self._search.search([old])
        for location in found:
            edit.replace(location.path, location.range, new)
