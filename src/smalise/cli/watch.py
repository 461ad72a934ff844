"""smalise watch command - keep a workspace index live."""

import asyncio
from pathlib import Path

import click

from smalise.cli.utils import load_cli_config, open_workspace
from smalise.config.models import SmaliseConfig
from smalise.core.progress import pluralize, status
from smalise.daemon.watcher import ChangeBatch, SmaliWatcher


def _report(batch: ChangeBatch) -> None:
    status(
        f"{pluralize(len(batch.added), 'file')} added, "
        f"{pluralize(len(batch.modified), 'file')} changed, "
        f"{pluralize(len(batch.deleted), 'file')} removed",
        style="info",
    )


async def _watch(root: Path, config: SmaliseConfig) -> None:
    workspace = await open_workspace(root, config)
    status(
        f"Watching {root} ({pluralize(len(workspace.index), 'class', 'classes')} indexed)",
        style="success",
    )
    watcher = SmaliWatcher(workspace, on_batch=_report)
    try:
        await watcher.run()
    finally:
        await workspace.deactivate()


@click.command()
@click.argument("root", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def watch_command(ctx: click.Context, root: Path) -> None:
    """Index ROOT and keep the index in sync with file changes.

    Runs until interrupted with Ctrl-C.
    """
    root = root.resolve()
    config = load_cli_config(ctx, root)
    try:
        asyncio.run(_watch(root, config))
    except KeyboardInterrupt:
        status("Stopped", style="info")
