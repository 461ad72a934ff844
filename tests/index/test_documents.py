"""Tests for the document index: events, conflicts and readiness."""

import asyncio
from pathlib import Path

import pytest
from lsprotocol import types as lsp
from samples import make_class

from smalise.core.diagnostics import DiagnosticCollection
from smalise.index.documents import DocumentIndex
from smalise.language.document import TextDocument

A = Path("/ws/pkg/A.smali")
B = Path("/ws/copy/A.smali")


def _doc(path: Path, descriptor: str) -> TextDocument:
    return TextDocument(path=path, text=make_class(descriptor))


def _assert_consistent(index: DocumentIndex) -> None:
    for path, identifier in index.records():
        jclass = index.get(identifier)
        assert jclass is not None
        assert jclass.path == path


class TestOpen:
    def test_indexes_class(self) -> None:
        index = DocumentIndex()

        jclass = index.open(_doc(A, "Lpkg/A;"))

        assert jclass is not None
        assert index.get("Lpkg/A;") is jclass
        assert index.identifier_for(A) == "Lpkg/A;"
        _assert_consistent(index)

    def test_ignores_non_smali_documents(self) -> None:
        index = DocumentIndex()

        assert index.open(TextDocument(Path("/ws/README.md"), "# readme")) is None
        assert len(index) == 0

    def test_reopening_returns_cached_entity(self) -> None:
        index = DocumentIndex()
        first = index.open(_doc(A, "Lpkg/A;"))

        second = index.open(TextDocument(path=A, text=make_class("Lpkg/A;", ".field x:I\n")))

        assert second is first
        assert second is not None and second.fields == []

    def test_parse_failure_attaches_diagnostic_and_drops_entity(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        index.open(_doc(A, "Lpkg/A;"))

        index.on_changed(TextDocument(path=A, text=".class Lpkg/A;\n.field broken\n"))

        assert index.get("Lpkg/A;") is None
        assert index.identifier_for(A) is None
        [diagnostic] = diagnostics.get(A)
        assert diagnostic.severity == lsp.DiagnosticSeverity.Error
        assert diagnostic.range.start.line == 1

    def test_successful_reparse_clears_parse_diagnostic(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        index.open(TextDocument(path=A, text=".class Lpkg/A;\n.field broken\n"))

        index.on_changed(_doc(A, "Lpkg/A;"))

        assert A not in diagnostics
        assert index.get("Lpkg/A;") is not None


class TestOnChanged:
    def test_identifier_change_moves_entry(self) -> None:
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))

        index.on_changed(_doc(A, "Lpkg/Renamed;"))

        assert index.get("Lpkg/A;") is None
        assert index.identifier_for(A) == "Lpkg/Renamed;"
        _assert_consistent(index)

    def test_same_identifier_replaces_entity(self) -> None:
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))

        jclass = index.on_changed(TextDocument(path=A, text=make_class("Lpkg/A;", ".field x:I\n")))

        assert jclass is not None
        assert index.get("Lpkg/A;") is jclass
        assert [f.identifier() for f in jclass.fields] == ["x:I"]


class TestConflicts:
    def test_second_file_with_same_identifier_is_rejected(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        first = index.open(_doc(A, "Lpkg/A;"))

        assert index.open(_doc(B, "Lpkg/A;")) is None

        assert index.get("Lpkg/A;") is first
        assert index.identifier_for(B) is None
        assert index.conflicts() == {B: "Lpkg/A;"}
        [diagnostic] = diagnostics.get(B)
        assert diagnostic.message == f"Class conflicted with {A}"
        assert diagnostic.severity == lsp.DiagnosticSeverity.Error
        _assert_consistent(index)

    def test_first_owner_stays_authoritative_across_edits_to_second(self) -> None:
        index = DocumentIndex()
        first = index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))

        index.on_changed(TextDocument(path=B, text=make_class("Lpkg/A;", ".field y:I\n")))

        assert index.get("Lpkg/A;") is first
        assert index.identifier_for(B) is None

    def test_second_file_edited_to_new_identifier_is_indexed_independently(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        first = index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))

        index.on_changed(_doc(B, "Lpkg/B;"))

        assert index.get("Lpkg/A;") is first
        assert index.identifier_for(B) == "Lpkg/B;"
        assert index.conflicts() == {}
        assert B not in diagnostics
        _assert_consistent(index)

    def test_deleting_owner_promotes_parked_file(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))

        index.on_deleted(A)

        promoted = index.get("Lpkg/A;")
        assert promoted is not None and promoted.path == B
        assert index.identifier_for(B) == "Lpkg/A;"
        assert B not in diagnostics
        _assert_consistent(index)

    def test_owner_changing_identifier_promotes_parked_file(self) -> None:
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))

        index.on_changed(_doc(A, "Lpkg/Other;"))

        assert index.identifier_for(B) == "Lpkg/A;"
        assert index.identifier_for(A) == "Lpkg/Other;"
        _assert_consistent(index)

    def test_earliest_parked_file_wins_promotion(self) -> None:
        third = Path("/ws/third/A.smali")
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))
        index.open(_doc(third, "Lpkg/A;"))

        index.on_deleted(A)

        assert index.identifier_for(B) == "Lpkg/A;"
        assert index.conflicts() == {third: "Lpkg/A;"}


class TestRenameAndDelete:
    def test_rename_keeps_entity_and_updates_path(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        jclass = index.open(_doc(A, "Lpkg/A;"))
        moved = Path("/ws/moved/A.smali")

        index.on_renamed(A, moved)

        assert index.get("Lpkg/A;") is jclass
        assert jclass is not None and jclass.path == moved
        assert index.identifier_for(A) is None
        assert index.identifier_for(moved) == "Lpkg/A;"
        _assert_consistent(index)

    def test_rename_moves_diagnostics_and_conflicts(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        index.open(_doc(A, "Lpkg/A;"))
        index.open(_doc(B, "Lpkg/A;"))
        moved = Path("/ws/moved/A.smali")

        index.on_renamed(B, moved)

        assert index.conflicts() == {moved: "Lpkg/A;"}
        assert moved in diagnostics
        assert B not in diagnostics

    def test_delete_removes_everything_for_path(self) -> None:
        diagnostics = DiagnosticCollection()
        index = DocumentIndex(diagnostics)
        index.open(TextDocument(path=A, text=".class Lpkg/A;\n.field broken\n"))
        index.open(_doc(B, "Lpkg/B;"))

        index.on_deleted(A)
        index.on_deleted(B)

        assert len(index) == 0
        assert len(diagnostics) == 0
        assert index.records() == []

    def test_random_event_sequence_keeps_index_consistent(self) -> None:
        paths = [Path(f"/ws/f{i}.smali") for i in range(4)]
        descriptors = ["Lpkg/A;", "Lpkg/B;", "Lpkg/A;", "Lpkg/C;"]
        index = DocumentIndex()

        for path, descriptor in zip(paths, descriptors, strict=True):
            index.open(_doc(path, descriptor))
            _assert_consistent(index)
        index.on_changed(_doc(paths[1], "Lpkg/A;"))
        _assert_consistent(index)
        index.on_renamed(paths[0], Path("/ws/renamed.smali"))
        _assert_consistent(index)
        index.on_deleted(Path("/ws/renamed.smali"))
        _assert_consistent(index)
        index.on_changed(_doc(paths[3], "Lpkg/B;"))
        _assert_consistent(index)

        assert set(index.conflicts().values()) <= {"Lpkg/A;"}


class TestReadiness:
    @pytest.mark.asyncio
    async def test_lookup_waits_for_ready(self) -> None:
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))

        pending = asyncio.create_task(index.lookup("Lpkg/A;"))
        await asyncio.sleep(0)
        assert not pending.done()

        index.mark_ready()
        jclass = await asyncio.wait_for(pending, timeout=1.0)

        assert jclass is not None and jclass.path == A

    @pytest.mark.asyncio
    async def test_lookup_empty_identifier_returns_none_immediately(self) -> None:
        index = DocumentIndex()

        assert await index.lookup(None) is None
        assert await index.lookup("") is None

    @pytest.mark.asyncio
    async def test_clear_keeps_readiness(self) -> None:
        index = DocumentIndex()
        index.open(_doc(A, "Lpkg/A;"))
        index.mark_ready()

        index.clear()

        assert index.is_ready
        assert len(index) == 0
        assert await asyncio.wait_for(index.lookup("Lpkg/A;"), timeout=1.0) is None

    def test_begin_loading_rearms_a_resolved_signal(self) -> None:
        index = DocumentIndex()
        index.mark_ready()

        index.begin_loading()

        assert not index.is_ready

    @pytest.mark.asyncio
    async def test_begin_loading_keeps_pending_waiters(self) -> None:
        index = DocumentIndex()
        pending = asyncio.ensure_future(index.wait_until_ready())
        await asyncio.sleep(0)

        index.begin_loading()
        index.mark_ready()

        await asyncio.wait_for(pending, timeout=1.0)
