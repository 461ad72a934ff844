"""smalise rename command - rename the symbol at a position."""

import asyncio
import json
from pathlib import Path

import click
from lsprotocol import types as lsp

from smalise.cli.utils import display_path, load_cli_config, open_workspace
from smalise.config.models import SmaliseConfig
from smalise.core.errors import SmaliseError
from smalise.core.logging import current_operation
from smalise.core.progress import get_console, pluralize, status
from smalise.refactor.edits import ApplyResult, WorkspaceEdit


async def _rename(
    root: Path,
    file: Path,
    position: lsp.Position,
    new_name: str,
    config: SmaliseConfig,
    *,
    dry_run: bool,
) -> tuple[WorkspaceEdit, ApplyResult | None]:
    workspace = await open_workspace(root, config)
    try:
        try:
            document = workspace.document(file)
        except (OSError, UnicodeDecodeError) as e:
            raise click.ClickException(f"Cannot read {file}: {e}") from e
        edit = await workspace.rename(document, position, new_name)
        result = None if edit.is_empty else workspace.apply(edit, dry_run=dry_run)
        return edit, result
    finally:
        await workspace.deactivate()


def _print_edit(edit: WorkspaceEdit, root: Path) -> None:
    console = get_console()
    for path, edits in edit.text_edits.items():
        console.print(f"[cyan]{display_path(path, root)}[/cyan]", highlight=False)
        for text_edit in edits:
            start = text_edit.range.start
            console.print(
                f"  {start.line + 1}:{start.character + 1} -> {text_edit.new_text}",
                highlight=False,
            )
    for rename in edit.file_renames:
        console.print(
            f"[cyan]{display_path(rename.old_path, root)}[/cyan]"
            f" => [cyan]{display_path(rename.new_path, root)}[/cyan]",
            highlight=False,
        )


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("file", type=click.Path(path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
@click.argument("new_name")
@click.option("--dry-run", is_flag=True, help="Show the edits without writing them")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def rename_command(
    ctx: click.Context,
    root: Path,
    file: Path,
    line: int,
    column: int,
    new_name: str,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Rename the class, field or method at FILE:LINE:COLUMN to NEW_NAME.

    FILE is relative to ROOT. LINE and COLUMN are 1-based. Class renames
    take a full descriptor (Lpkg/Name;) and also move the class file.
    """
    root = root.resolve()
    config = load_cli_config(ctx, root)
    position = lsp.Position(line=line - 1, character=column - 1)

    try:
        edit, result = asyncio.run(
            _rename(root, file, position, new_name, config, dry_run=dry_run)
        )
    except SmaliseError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        payload = edit.to_dict()
        payload["applied"] = bool(result and result.applied)
        payload["dry_run"] = dry_run
        payload["operation_id"] = current_operation()
        click.echo(json.dumps(payload, indent=2))
        return

    if edit.is_empty:
        status(f"Nothing to rename at {file}:{line}:{column}", style="warning")
        return

    _print_edit(edit, root)
    summary = (
        f"{pluralize(edit.edit_count, 'edit')} in {pluralize(len(edit.text_edits), 'file')}"
    )
    if edit.file_renames:
        summary += f", {pluralize(len(edit.file_renames), 'file rename')}"
    if dry_run:
        status(f"Dry run: {summary}", style="info")
    else:
        status(f"Applied {summary}", style="success")
