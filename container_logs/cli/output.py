"""Rich console output helpers for the container-logs CLI."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()

_STATE_STYLES = {
  "running": "green",
  "exited": "red",
  "paused": "yellow",
  "created": "dim",
}


def banner(text):
  """Display a styled banner."""
  console.print(Panel(f"  {text}", style="bold blue"))


def success(msg):
  """Display a success message."""
  console.print(f"[green]{msg}[/green]")


def warning(msg):
  """Display a warning message."""
  console.print(f"[yellow]{msg}[/yellow]")


def error(msg):
  """Display an error message."""
  console.print(f"[red]{msg}[/red]")


def containers_table(containers, runtime=""):
  """Display the container inventory."""
  title = f"Containers ({runtime})" if runtime else "Containers"
  table = Table(title=title)
  table.add_column("ID", style="bold")
  table.add_column("Name")
  table.add_column("Image", style="dim")
  table.add_column("Status")

  if not containers:
    table.add_row("[dim]No containers found[/dim]", "", "", "")

  for c in containers:
    style = _STATE_STYLES.get(c.state, "")
    status = Text(c.status, style=style)
    table.add_row(c.id, c.name, c.image, status)

  console.print()
  console.print(table)
  console.print()


def make_log_panel(entries, title, max_lines):
  """Build a Panel renderable from the newest retained log entries.

  Each entry may hold several lines; only the last ``max_lines`` lines are
  shown so the panel fits the terminal.
  """
  lines = []
  for entry in entries:
    stamp = entry.timestamp.strftime("%H:%M:%S")
    for line in entry.text.rstrip("\n").split("\n"):
      lines.append(f"{stamp} {line}")
  lines = lines[-max_lines:] if max_lines > 0 else lines
  content = Text("\n".join(lines)) if lines else "Waiting for output..."
  return Panel(content, title=title, border_style="blue")
