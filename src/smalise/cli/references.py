"""smalise references command - literal symbol search."""

import asyncio
import json
from pathlib import Path

import click

from smalise.cli.utils import display_path, load_cli_config, open_workspace
from smalise.config.models import SmaliseConfig
from smalise.index.search import Location


async def _references(
    root: Path, symbols: tuple[str, ...], config: SmaliseConfig
) -> list[list[Location]]:
    workspace = await open_workspace(root, config)
    try:
        return await workspace.references(symbols)
    finally:
        await workspace.deactivate()


@click.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("symbols", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def references_command(
    ctx: click.Context, root: Path, symbols: tuple[str, ...], as_json: bool
) -> None:
    """Find every literal occurrence of each SYMBOL under ROOT.

    Symbols are matched as exact text, e.g. 'Lpkg/Name;' or
    'Lpkg/Holder;->count:I'. Positions are printed 1-based.
    """
    root = root.resolve()
    config = load_cli_config(ctx, root)
    results = asyncio.run(_references(root, symbols, config))

    if as_json:
        payload = {
            symbol: [
                {
                    "path": str(location.path),
                    "line": location.range.start.line + 1,
                    "column": location.range.start.character + 1,
                }
                for location in locations
            ]
            for symbol, locations in zip(symbols, results, strict=True)
        }
        click.echo(json.dumps(payload, indent=2))
        return

    for symbol, locations in zip(symbols, results, strict=True):
        click.echo(f"{symbol} ({len(locations)})")
        for location in locations:
            start = location.range.start
            click.echo(
                f"  {display_path(location.path, root)}:{start.line + 1}:{start.character + 1}"
            )
