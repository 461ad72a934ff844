from smalise.cli.main import cli

cli()
