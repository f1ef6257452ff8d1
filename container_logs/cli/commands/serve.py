"""container-logs serve command — run the streaming server."""

import click

from container_logs.backend import runtime
from container_logs.cli.config import ServerConfig
from container_logs.cli.output import banner, console, warning
from container_logs.constants import (
  HOST_ENV_VAR,
  PORT_ENV_VAR,
  RUNTIME_ENV_VAR,
  SUPPORTED_RUNTIMES,
  WS_PATH,
  get_default_host,
  get_default_port,
)
from container_logs.server import app as server_app


@click.command()
@click.option(
  "--host",
  default=None,
  help=f"Interface to bind [env: {HOST_ENV_VAR}, default: 127.0.0.1]",
)
@click.option(
  "--port",
  type=int,
  default=None,
  help=f"Port to listen on [env: {PORT_ENV_VAR}, default: 3001]",
)
@click.option(
  "--runtime",
  "runtime_name",
  envvar=RUNTIME_ENV_VAR,
  type=click.Choice(SUPPORTED_RUNTIMES),
  default=None,
  help=f"Force a container runtime [env: {RUNTIME_ENV_VAR}]",
)
def serve(host, port, runtime_name):
  """Serve the container API and the live log websocket."""
  banner("container-logs Server")

  try:
    config = ServerConfig(
      host=host or get_default_host(),
      port=port or get_default_port(),
      runtime=runtime_name,
    )
    detected = runtime_name or runtime.detect_runtime()
  except (RuntimeError, ValueError) as e:
    raise click.ClickException(str(e))  # noqa: B904

  if not detected:
    warning(
      "Neither Docker nor Podman was found. Live streams will report errors"
      " until one is installed."
    )
  else:
    console.print(f"Container runtime: [bold]{detected}[/bold]")

  console.print(f"HTTP:      http://{config.host}:{config.port}")
  console.print(f"Websocket: ws://{config.host}:{config.port}{WS_PATH}")
  console.print()
  server_app.serve(config)
