"""Workspace index: document records, bulk loading and reference search."""

from smalise.index.documents import DocumentIndex
from smalise.index.loader import (
    LoadResult,
    discover_smali_files,
    load_documents,
    load_workspace,
    read_document,
)
from smalise.index.search import Location, ReferenceSearch, find_occurrences

__all__ = [
    "DocumentIndex",
    "LoadResult",
    "discover_smali_files",
    "load_documents",
    "load_workspace",
    "read_document",
    "Location",
    "ReferenceSearch",
    "find_occurrences",
]
