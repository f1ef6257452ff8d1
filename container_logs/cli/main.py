"""container-logs CLI entry point."""

import click
from absl import logging

from container_logs.cli.commands.config import config
from container_logs.cli.commands.containers import containers
from container_logs.cli.commands.history import history
from container_logs.cli.commands.serve import serve
from container_logs.cli.commands.tail import tail


@click.group()
@click.version_option(package_name="container-logs")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
  """container-logs: Stream and filter Docker/Podman container logs."""
  logging.set_verbosity(logging.DEBUG if verbose else logging.INFO)


cli.add_command(serve)
cli.add_command(containers)
cli.add_command(history)
cli.add_command(tail)
cli.add_command(config)
