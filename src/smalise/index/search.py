"""Literal-text reference search over indexed class texts.

Matches are plain substring hits, not token-aware. Callers pass symbols
that are specific enough on their own (full descriptors, qualified
``owner->member`` references), where the trailing ``;``/signature keeps
``Lpkg/A;`` from matching inside ``Lpkg/AB;``.

Nothing anchors the start of a match, though: ``Lpkg/A;`` is also found
inside ``Lcom/Lpkg/A;``, and a class rename rewrites that occurrence too.
Such descriptors are rare in real smali and the collision is accepted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog
from lsprotocol import types as lsp

from smalise.index.documents import DocumentIndex
from smalise.language.document import line_starts, position_at

logger = structlog.get_logger()


@dataclass
class Location:
    """A range inside a workspace file."""

    path: Path
    range: lsp.Range


def find_occurrences(text: str, symbol: str) -> list[tuple[int, int]]:
    """Start/end offsets of every non-overlapping occurrence of ``symbol``."""
    if not symbol:
        return []
    spans: list[tuple[int, int]] = []
    offset = text.find(symbol)
    while offset != -1:
        end = offset + len(symbol)
        spans.append((offset, end))
        offset = text.find(symbol, end)
    return spans


class ReferenceSearch:
    """Scan every indexed class for literal symbol occurrences."""

    def __init__(self, index: DocumentIndex) -> None:
        self._index = index

    async def search(self, symbols: Sequence[str]) -> list[list[Location]]:
        """One location list per symbol, in the order given."""
        await self._index.wait_until_ready()

        locations: list[list[Location]] = [[] for _ in symbols]
        for jclass in self._index.classes():
            starts: list[int] | None = None
            for i, symbol in enumerate(symbols):
                spans = find_occurrences(jclass.text, symbol)
                if not spans:
                    continue
                if starts is None:
                    starts = line_starts(jclass.text)
                for start, end in spans:
                    locations[i].append(
                        Location(
                            path=jclass.path,
                            range=lsp.Range(
                                start=position_at(starts, start),
                                end=position_at(starts, end),
                            ),
                        )
                    )

        logger.debug(
            "symbols_searched",
            symbols=list(symbols),
            matches=[len(found) for found in locations],
        )
        return locations
