"""Tests for text documents and offset/position translation."""

from pathlib import Path

from lsprotocol import types as lsp

from smalise.language.document import TextDocument, line_starts, position_at


class TestLineStarts:
    def test_single_line(self) -> None:
        assert line_starts("abc") == [0]

    def test_trailing_newline_opens_empty_last_line(self) -> None:
        assert line_starts("ab\ncd\n") == [0, 3, 6]

    def test_position_at_translates_offsets(self) -> None:
        starts = line_starts("ab\ncd\n")

        assert position_at(starts, 0) == lsp.Position(line=0, character=0)
        assert position_at(starts, 4) == lsp.Position(line=1, character=1)
        assert position_at(starts, 6) == lsp.Position(line=2, character=0)


class TestTextDocument:
    def test_language_id_from_extension(self) -> None:
        assert TextDocument(Path("/ws/A.smali"), "").language_id == "smali"
        assert TextDocument(Path("/ws/notes.txt"), "").language_id == "plaintext"

    def test_line_at_strips_terminators(self) -> None:
        doc = TextDocument(Path("/ws/A.smali"), "first\r\nsecond\n")

        assert doc.line_at(0) == "first"
        assert doc.line_at(1) == "second"
        assert doc.line_at(2) == ""
        assert doc.line_at(99) == ""
        assert doc.line_count == 3

    def test_offset_round_trip(self) -> None:
        doc = TextDocument(Path("/ws/A.smali"), ".class Lpkg/A;\n.super Ljava/lang/Object;\n")
        position = lsp.Position(line=1, character=7)

        offset = doc.offset_at(position)

        assert doc.text[offset:].startswith("Ljava/lang/Object;")
        assert doc.position_at(offset) == position

    def test_offset_at_clamps_past_line_end(self) -> None:
        doc = TextDocument(Path("/ws/A.smali"), "ab\ncd")

        assert doc.offset_at(lsp.Position(line=0, character=50)) == 2
        assert doc.offset_at(lsp.Position(line=9, character=0)) == 5
