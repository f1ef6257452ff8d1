"""Container runtime discovery and one-shot CLI queries.

Wraps the ``docker`` / ``podman`` CLIs for everything that is plain
request/response: runtime detection, container inventory, and historical log
fetches. Live tailing lives in :mod:`container_logs.backend.process_stream`.

All functions raise ``RuntimeError`` on unrecoverable failures; the HTTP and
CLI layers convert these into error responses.
"""

import os
import shutil
import subprocess
from dataclasses import asdict, dataclass
from typing import Optional

from absl import logging

from container_logs.constants import RUNTIME_ENV_VAR, SUPPORTED_RUNTIMES
from container_logs.server.dispatch import filter_lines

_PS_FORMAT = "{{.ID}}|{{.Names}}|{{.Image}}|{{.Status}}|{{.State}}"


@dataclass(frozen=True)
class Container:
  """One row of ``<runtime> ps -a``."""

  id: str
  name: str
  image: str
  status: str  # Human description, e.g. "Up 2 hours".
  state: str  # Machine state, e.g. "running" / "exited".

  def to_dict(self):
    return asdict(self)


def detect_runtime() -> Optional[str]:
  """Return the container CLI to use, or ``None`` if none is installed.

  ``CONTAINER_LOGS_RUNTIME`` forces a specific runtime (it must still be on
  PATH); otherwise docker is preferred over podman.
  """
  forced = os.environ.get(RUNTIME_ENV_VAR, "").strip().lower()
  if forced:
    if forced not in SUPPORTED_RUNTIMES:
      raise RuntimeError(
        f"{RUNTIME_ENV_VAR} must be one of {', '.join(SUPPORTED_RUNTIMES)},"
        f" got {forced!r}"
      )
    return forced if shutil.which(forced) else None

  for runtime in SUPPORTED_RUNTIMES:
    if shutil.which(runtime):
      return runtime
  return None


def require_runtime() -> str:
  """Like detect_runtime(), but raise when no runtime is available."""
  runtime = detect_runtime()
  if not runtime:
    raise RuntimeError(
      "Neither Docker nor Podman was found. Install one of them and make"
      " sure it is on PATH."
    )
  return runtime


def _run(args):
  try:
    return subprocess.run(args, capture_output=True, text=True, check=True)
  except subprocess.CalledProcessError as e:
    stderr = (e.stderr or "").strip()
    raise RuntimeError(
      f"`{' '.join(args)}` failed with exit code {e.returncode}: {stderr}"
    ) from e
  except OSError as e:
    raise RuntimeError(f"Failed to run {args[0]}: {e}") from e


def parse_ps_output(stdout):
  """Parse ``ps --format`` output produced with _PS_FORMAT."""
  containers = []
  for line in stdout.strip().splitlines():
    if not line.strip():
      continue
    fields = line.split("|")
    if len(fields) < 5:
      logging.warning("Skipping unparseable ps line: %s", line)
      continue
    containers.append(Container(*fields[:5]))
  return containers


def list_containers():
  """List all containers, running and stopped.

  Returns:
      list[Container]: one entry per container, in CLI order.
  """
  runtime = require_runtime()
  result = _run([runtime, "ps", "-a", "--format", _PS_FORMAT])
  return parse_ps_output(result.stdout)


def build_logs_command(runtime, container_id, since=None, until=None, tail=None):
  """Build the argv for a one-shot (non-follow) ``logs`` call."""
  args = [runtime, "logs"]
  if since:
    args += ["--since", since]
  if until:
    args += ["--until", until]
  if tail is not None:
    args += ["--tail", str(tail)]
  args.append(container_id)
  return args


def get_container_logs(
  container_id, since=None, until=None, filter=None, tail=None
):
  """Fetch historical logs for a container.

  The runtime writes the container's stderr to our stderr, so both streams
  are concatenated.

  Args:
      container_id: Container ID or name.
      since: Optional start time accepted by ``logs --since``.
      until: Optional end time accepted by ``logs --until``.
      filter: Optional case-insensitive keyword; non-matching lines dropped.
      tail: Optional number of trailing lines.

  Returns:
      str: The (filtered) log text.
  """
  runtime = require_runtime()
  result = _run(build_logs_command(runtime, container_id, since, until, tail))
  logs = result.stdout + result.stderr
  if filter:
    logs = filter_lines(logs, filter)
  return logs
