"""smalise check command - index a workspace and report diagnostics."""

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path

import click
from lsprotocol import types as lsp
from rich.console import Console
from rich.table import Table

from smalise.cli.utils import display_path, load_cli_config, open_workspace
from smalise.config.models import SmaliseConfig
from smalise.core.progress import pluralize, status

_SEVERITY_STYLES = {
    lsp.DiagnosticSeverity.Error: ("error", "red"),
    lsp.DiagnosticSeverity.Warning: ("warning", "yellow"),
    lsp.DiagnosticSeverity.Information: ("info", "cyan"),
    lsp.DiagnosticSeverity.Hint: ("hint", "dim"),
}


@dataclass
class CheckReport:
    """What ``check`` found in one workspace."""

    classes: int = 0
    unreadable: int = 0
    has_errors: bool = False
    diagnostics: list[tuple[Path, list[lsp.Diagnostic]]] = field(default_factory=list)


def make_diagnostics_table(report: CheckReport, root: Path) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("file", style="cyan")
    table.add_column("line", justify="right")
    table.add_column("severity")
    table.add_column("message")

    for path, entries in report.diagnostics:
        for diagnostic in entries:
            name, style = _SEVERITY_STYLES.get(
                diagnostic.severity or lsp.DiagnosticSeverity.Error, ("error", "red")
            )
            table.add_row(
                display_path(path, root),
                str(diagnostic.range.start.line + 1),
                f"[{style}]{name}[/{style}]",
                diagnostic.message,
            )
    return table


async def _check(root: Path, config: SmaliseConfig) -> CheckReport:
    workspace = await open_workspace(root, config)
    report = CheckReport(
        classes=len(workspace.index),
        unreadable=len(workspace.load_result.failed) if workspace.load_result else 0,
        has_errors=workspace.diagnostics.has_errors(),
        diagnostics=list(workspace.diagnostics.items()),
    )
    await workspace.deactivate()
    return report


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def check_command(ctx: click.Context, root: Path) -> None:
    """Index every smali file and report parse errors and class conflicts.

    ROOT is the workspace root (default: current directory). Exits with
    status 1 when any error is reported or a file could not be read.
    """
    root = root.resolve()
    config = load_cli_config(ctx, root)
    report = asyncio.run(_check(root, config))

    status(
        f"Indexed {pluralize(report.classes, 'class', 'classes')} under {root}",
        style="success",
    )
    if report.unreadable:
        status(f"{pluralize(report.unreadable, 'file')} could not be read", style="warning")

    if report.diagnostics:
        Console().print(make_diagnostics_table(report, root))

    if report.has_errors or report.unreadable:
        status(f"{pluralize(len(report.diagnostics), 'file')} with problems", style="error")
        sys.exit(1)
