"""container-logs containers command — list containers."""

import click

from container_logs.backend import runtime
from container_logs.cli.output import containers_table
from container_logs.client import history
from container_logs.constants import SERVER_ENV_VAR, get_default_server_url


@click.command()
@click.option(
  "--server",
  envvar=SERVER_ENV_VAR,
  default=None,
  help=f"Server base URL [env: {SERVER_ENV_VAR}]",
)
@click.option(
  "--local",
  is_flag=True,
  help="Query the local container runtime directly instead of a server",
)
def containers(server, local):
  """List containers, running and stopped."""
  try:
    if local:
      rows = runtime.list_containers()
      runtime_name = runtime.detect_runtime() or ""
    else:
      server = server or get_default_server_url()
      rows = history.fetch_containers(server)
      runtime_name = history.fetch_runtime(server)
  except RuntimeError as e:
    raise click.ClickException(str(e))  # noqa: B904

  containers_table(rows, runtime=runtime_name)
