"""Typed configuration for the container-logs CLI."""

from dataclasses import dataclass
from typing import Optional

from container_logs.constants import (
  DEFAULT_HOST,
  DEFAULT_MAX_LOGS,
  DEFAULT_PORT,
  DEFAULT_TAIL,
)


@dataclass
class ServerConfig:
  """Where and how `container-logs serve` listens."""

  host: str = DEFAULT_HOST
  port: int = DEFAULT_PORT
  runtime: Optional[str] = None  # None = auto-detect docker, then podman.


@dataclass
class TailConfig:
  """Options for the terminal log client."""

  server: str
  container_id: str
  filter: str = ""
  tail: int = DEFAULT_TAIL
  max_logs: int = DEFAULT_MAX_LOGS
