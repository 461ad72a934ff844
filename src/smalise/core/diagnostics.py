"""Per-file diagnostics collection.

Mirrors an editor's diagnostic collection: each file path maps to the list
of diagnostics currently attached to it. Entries are replaced wholesale, never
merged, so a successful reparse clears whatever a previous failure reported.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from lsprotocol import types as lsp

from smalise.core.errors import ParseError, SmaliseError

SOURCE = "smalise"

_FILE_START = lsp.Range(
    start=lsp.Position(line=0, character=0),
    end=lsp.Position(line=0, character=0),
)


def make_diagnostic(
    message: str,
    severity: lsp.DiagnosticSeverity = lsp.DiagnosticSeverity.Hint,
    range: lsp.Range | None = None,
    code: str | None = None,
) -> lsp.Diagnostic:
    """Build a diagnostic, anchored at the start of the file by default."""
    return lsp.Diagnostic(
        range=range or _FILE_START,
        message=message,
        severity=severity,
        code=code,
        source=SOURCE,
    )


def diagnostic_from_error(error: SmaliseError) -> lsp.Diagnostic:
    """Convert a structured error into an error-severity diagnostic."""
    range = None
    if isinstance(error, ParseError):
        line = error.details.get("line", 0)
        range = lsp.Range(
            start=lsp.Position(line=line, character=error.details.get("start", 0)),
            end=lsp.Position(line=line, character=error.details.get("end", 0)),
        )
    return make_diagnostic(error.message, lsp.DiagnosticSeverity.Error, range, error.error_name)


class DiagnosticCollection:
    """Diagnostics keyed by file path."""

    def __init__(self, name: str = SOURCE) -> None:
        self.name = name
        self._entries: dict[Path, list[lsp.Diagnostic]] = {}

    def set(self, path: Path, diagnostics: list[lsp.Diagnostic] | None) -> None:
        if diagnostics:
            self._entries[path] = list(diagnostics)
        else:
            self._entries.pop(path, None)

    def get(self, path: Path) -> list[lsp.Diagnostic]:
        return list(self._entries.get(path, []))

    def delete(self, path: Path) -> None:
        self._entries.pop(path, None)

    def move(self, old_path: Path, new_path: Path) -> None:
        """Re-attach diagnostics of a renamed file to its new path."""
        diagnostics = self._entries.pop(old_path, None)
        if diagnostics is not None:
            self._entries[new_path] = diagnostics

    def has_errors(self) -> bool:
        return any(
            d.severity == lsp.DiagnosticSeverity.Error
            for diagnostics in self._entries.values()
            for d in diagnostics
        )

    def clear(self) -> None:
        self._entries.clear()

    def items(self) -> Iterator[tuple[Path, list[lsp.Diagnostic]]]:
        for path in sorted(self._entries):
            yield path, list(self._entries[path])

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)
