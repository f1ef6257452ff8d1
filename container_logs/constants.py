"""Defaults, limits, and environment variable names for container-logs."""

import os

HOST_ENV_VAR = "CONTAINER_LOGS_HOST"
PORT_ENV_VAR = "CONTAINER_LOGS_PORT"
RUNTIME_ENV_VAR = "CONTAINER_LOGS_RUNTIME"
SERVER_ENV_VAR = "CONTAINER_LOGS_SERVER"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001

SUPPORTED_RUNTIMES = ("docker", "podman")  # Detection order.

WS_PATH = "/ws/logs"
API_PREFIX = "/api/containers"

# Client-side batching window and reconnect delay, in seconds.
BATCH_INTERVAL_SECONDS = 0.5
RECONNECT_DELAY_SECONDS = 3.0

DEFAULT_TAIL = 100
DEFAULT_MAX_LOGS = 500
MAX_LOGS_LIMIT = 1000  # Upper bound for max_logs; 0 is unbounded.


def get_default_host():
  """Return host from CONTAINER_LOGS_HOST env var, or DEFAULT_HOST."""
  return os.environ.get(HOST_ENV_VAR) or DEFAULT_HOST


def get_default_port():
  """Return port from CONTAINER_LOGS_PORT env var, or DEFAULT_PORT."""
  value = os.environ.get(PORT_ENV_VAR)
  if not value:
    return DEFAULT_PORT
  try:
    return int(value)
  except ValueError:
    raise ValueError(
      f"{PORT_ENV_VAR} must be an integer, got {value!r}"
    ) from None


def get_default_server_url():
  """Return the HTTP base URL clients connect to by default."""
  url = os.environ.get(SERVER_ENV_VAR)
  if url:
    return url.rstrip("/")
  return f"http://{get_default_host()}:{get_default_port()}"


def http_to_ws_url(base_url, path=WS_PATH):
  """Convert an http(s) base URL into the matching ws(s) endpoint URL."""
  base_url = base_url.rstrip("/")
  if base_url.startswith("https://"):
    return "wss://" + base_url[len("https://") :] + path
  if base_url.startswith("http://"):
    return "ws://" + base_url[len("http://") :] + path
  return base_url + path
