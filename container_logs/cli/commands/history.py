"""container-logs history command — print historical logs."""

import click

from container_logs.backend import runtime
from container_logs.client import history as history_client
from container_logs.constants import SERVER_ENV_VAR, get_default_server_url


@click.command()
@click.argument("container_id")
@click.option("--since", default=None, help="Only logs after this time")
@click.option("--until", default=None, help="Only logs before this time")
@click.option("--filter", "keyword", default=None, help="Case-insensitive keyword")
@click.option("--tail", type=click.IntRange(min=0), default=None,
              help="Number of trailing lines")
@click.option(
  "--server",
  envvar=SERVER_ENV_VAR,
  default=None,
  help=f"Server base URL [env: {SERVER_ENV_VAR}]",
)
@click.option("--local", is_flag=True, help="Read from the local runtime directly")
def history(container_id, since, until, keyword, tail, server, local):
  """Print historical logs of CONTAINER_ID."""
  try:
    if local:
      text = runtime.get_container_logs(
        container_id, since=since, until=until, filter=keyword, tail=tail
      )
    else:
      text = history_client.fetch_logs(
        server or get_default_server_url(),
        container_id,
        since=since,
        until=until,
        filter=keyword,
        tail=tail,
      )
  except RuntimeError as e:
    raise click.ClickException(str(e))  # noqa: B904

  click.echo(text, nl=not text.endswith("\n"))
