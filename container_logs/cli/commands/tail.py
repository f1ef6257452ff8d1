"""container-logs tail command — follow a container's logs live."""

import asyncio

import click
from rich.live import Live

from container_logs.cli.config import TailConfig
from container_logs.cli.output import console, make_log_panel
from container_logs.client.log_stream import validate_max_logs
from container_logs.client.session import LogViewerSession, Subject
from container_logs.constants import (
  DEFAULT_MAX_LOGS,
  DEFAULT_TAIL,
  SERVER_ENV_VAR,
  get_default_server_url,
  http_to_ws_url,
)

_MAX_DISPLAY_LINES = 25


async def _follow(config, max_lines):
  """Run a LogViewerSession and render it until cancelled."""
  title = f"Live logs • {config.container_id}"
  if config.filter:
    title += f" (filter: {config.filter})"
  shown_notices = 0

  with Live(
    make_log_panel((), title, max_lines),
    console=console,
    refresh_per_second=4,
  ) as live:

    def render(session):
      nonlocal shown_notices
      notices = list(session.notices)
      for notice in notices[shown_notices:]:
        live.console.print(f"[yellow]{notice}[/yellow]")
      shown_notices = len(notices)
      state = "connected" if session.connected else "disconnected"
      live.update(
        make_log_panel(session.logs, f"{title} [{state}]", max_lines)
      )

    session = LogViewerSession(
      http_to_ws_url(config.server),
      max_logs=config.max_logs,
      tail=config.tail,
      on_update=render,
      subject=Subject(container_id=config.container_id, filter=config.filter),
    )
    async with session:
      await session.start()


@click.command()
@click.argument("container_id")
@click.option("--filter", "keyword", default="", help="Case-insensitive keyword")
@click.option("--tail", "tail_lines", type=click.IntRange(min=0),
              default=DEFAULT_TAIL, show_default=True,
              help="Historical lines to emit before following")
@click.option("--max-logs", default=str(DEFAULT_MAX_LOGS), show_default=True,
              help="Entries to retain, 0~1000 (0 = unbounded)")
@click.option("--lines", type=click.IntRange(min=1),
              default=_MAX_DISPLAY_LINES, show_default=True,
              help="Lines shown in the live panel")
@click.option(
  "--server",
  envvar=SERVER_ENV_VAR,
  default=None,
  help=f"Server base URL [env: {SERVER_ENV_VAR}]",
)
def tail(container_id, keyword, tail_lines, max_logs, lines, server):
  """Follow CONTAINER_ID's logs through a container-logs server."""
  value, err = validate_max_logs(max_logs)
  if err:
    raise click.BadParameter(err, param_hint="--max-logs")

  config = TailConfig(
    server=server or get_default_server_url(),
    container_id=container_id,
    filter=keyword,
    tail=tail_lines,
    max_logs=value,
  )
  try:
    asyncio.run(_follow(config, lines))
  except KeyboardInterrupt:
    console.print("\nStopped.")
