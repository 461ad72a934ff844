"""User-facing console output for CLI commands.

Usage::

    from smalise.core.progress import status

    status("Indexed 120 classes", style="success")  # ✓ Indexed 120 classes
    status("2 files failed to parse", style="error")  # ✗ 2 files failed to parse

Status lines go to stderr so that ``--json`` output on stdout stays clean.
"""

from __future__ import annotations

from rich.console import Console

from smalise.core.logging import get_logger

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    prefix = _STYLES.get(style, "")
    padding = " " * indent
    _console.print(f"{padding}{prefix}{message}", highlight=False)

    get_logger(__name__).debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 class``, ``3 classes``."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
