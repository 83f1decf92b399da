# ABOUTME: CLI package for MoonSync, built on Click.
# ABOUTME: Defines the root command group, log setup, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from moonsync.cli.commands import create_cmd, import_cmd, inspect_cmd, refresh_cmd, sync_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(package_name="moonsync")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """MoonSync - sync Moon+ Reader highlights into Markdown notes."""
    _configure_logging(verbose)


cli.add_command(sync_cmd.sync)
cli.add_command(inspect_cmd.inspect)
cli.add_command(create_cmd.create)
cli.add_command(import_cmd.import_export)
cli.add_command(refresh_cmd.refresh_metadata)
