"""Text documents with offset <-> position translation."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from pathlib import Path

from lsprotocol import types as lsp

from smalise.config.constants import SMALI_EXTENSION, SMALI_LANGUAGE_ID


def line_starts(text: str) -> list[int]:
    """Offsets at which each line of ``text`` begins."""
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


def position_at(starts: list[int], offset: int) -> lsp.Position:
    """Translate a text offset to a 0-based line/character position."""
    line = bisect.bisect_right(starts, offset) - 1
    return lsp.Position(line=line, character=offset - starts[line])


@dataclass
class TextDocument:
    """Snapshot of a file's text."""

    path: Path
    text: str
    _starts: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._starts = line_starts(self.text)

    @property
    def language_id(self) -> str:
        if self.path.suffix == SMALI_EXTENSION:
            return SMALI_LANGUAGE_ID
        return "plaintext"

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_at(self, line: int) -> str:
        """Text of a line without its line terminator."""
        if not (0 <= line < len(self._starts)):
            return ""
        start = self._starts[line]
        end = self._starts[line + 1] - 1 if line + 1 < len(self._starts) else len(self.text)
        return self.text[start:end].rstrip("\r")

    def lines(self) -> list[str]:
        return [self.line_at(i) for i in range(len(self._starts))]

    def position_at(self, offset: int) -> lsp.Position:
        offset = max(0, min(offset, len(self.text)))
        return position_at(self._starts, offset)

    def offset_at(self, position: lsp.Position) -> int:
        """Clamp a position into the text and return its offset."""
        if position.line >= len(self._starts):
            return len(self.text)
        line = max(position.line, 0)
        character = max(0, min(position.character, len(self.line_at(line))))
        return self._starts[line] + character
