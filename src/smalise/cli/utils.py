"""CLI utilities."""

from pathlib import Path

import click

from smalise.config.loader import load_config
from smalise.config.models import SmaliseConfig
from smalise.core.errors import ConfigError
from smalise.core.logging import begin_operation, configure_logging
from smalise.workspace import SmaliWorkspace


def load_cli_config(ctx: click.Context, root: Path) -> SmaliseConfig:
    """Load the workspace config and reconfigure logging from it.

    ``-v`` on the command group forces DEBUG regardless of config. Log
    records emitted by the command are tagged with its name and a fresh
    operation id.

    Raises:
        click.ClickException: The config files are invalid.
    """
    try:
        config = load_config(root)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    begin_operation(ctx.info_name or "smalise")
    return config


async def open_workspace(root: Path, config: SmaliseConfig) -> SmaliWorkspace:
    """Activate a workspace and wait for its initial load.

    Raises:
        click.ClickException: The workspace could not be loaded.
    """
    workspace = SmaliWorkspace(root, config)
    await workspace.activate()
    await workspace.ready()
    if workspace.load_error is not None:
        await workspace.deactivate()
        raise click.ClickException(str(workspace.load_error))
    return workspace


def display_path(path: Path, root: Path) -> str:
    """``path`` relative to ``root`` when it lives inside it."""
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)
