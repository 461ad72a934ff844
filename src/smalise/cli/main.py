"""smalise CLI - smalise command."""

import click

from smalise.cli.check import check_command
from smalise.cli.references import references_command
from smalise.cli.rename import rename_command
from smalise.cli.watch import watch_command
from smalise.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="smalise")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """smalise - workspace index and rename refactoring for smali sources."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(check_command, name="check")
cli.add_command(rename_command, name="rename")
cli.add_command(references_command, name="references")
cli.add_command(watch_command, name="watch")


if __name__ == "__main__":
    cli()
