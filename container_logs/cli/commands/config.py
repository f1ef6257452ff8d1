"""container-logs config command — show resolved configuration."""

import os

import click
from rich.table import Table

from container_logs.backend import runtime
from container_logs.cli.output import banner, console
from container_logs.constants import (
  DEFAULT_HOST,
  DEFAULT_PORT,
  HOST_ENV_VAR,
  PORT_ENV_VAR,
  RUNTIME_ENV_VAR,
  SERVER_ENV_VAR,
  get_default_server_url,
)


def _row(table, label, env_var, default):
  value = os.environ.get(env_var)
  table.add_row(
    label,
    value or str(default),
    env_var if value else f"default ({default})",
  )


@click.command()
def config():
  """Show current container-logs configuration."""
  banner("container-logs Configuration")

  table = Table()
  table.add_column("Setting", style="bold")
  table.add_column("Value", style="green")
  table.add_column("Source", style="dim")

  _row(table, "Host", HOST_ENV_VAR, DEFAULT_HOST)
  _row(table, "Port", PORT_ENV_VAR, DEFAULT_PORT)
  _row(table, "Server URL", SERVER_ENV_VAR, get_default_server_url())

  forced = os.environ.get(RUNTIME_ENV_VAR)
  try:
    detected = runtime.detect_runtime() or "(none found)"
  except RuntimeError as e:
    detected = f"[red]{e}[/red]"
  table.add_row(
    "Runtime", detected, RUNTIME_ENV_VAR if forced else "auto-detect"
  )

  console.print()
  console.print(table)
  console.print()
  console.print("Set values via environment variables:")
  console.print(f"  export {HOST_ENV_VAR}=0.0.0.0")
  console.print(f"  export {PORT_ENV_VAR}={DEFAULT_PORT}")
  console.print(f"  export {RUNTIME_ENV_VAR}=podman")
  console.print()
