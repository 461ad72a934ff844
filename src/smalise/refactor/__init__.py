"""Rename refactoring - classification, edit planning and application."""

from smalise.refactor.edits import ApplyResult, FileRename, WorkspaceEdit, apply_workspace_edit
from smalise.refactor.rename import RenameEngine, RenameTarget, classify, prepare, prepare_rename

__all__ = [
    "ApplyResult",
    "FileRename",
    "WorkspaceEdit",
    "apply_workspace_edit",
    "RenameEngine",
    "RenameTarget",
    "classify",
    "prepare",
    "prepare_rename",
]
