"""Wire messages exchanged over the log streaming websocket.

Every frame on ``/ws/logs`` is a JSON object with a ``type`` discriminator.
This module is the single source of truth for those shapes, used by both the
server (registry, dispatch, app) and the client (transport, session).

Server -> client::

    {"type": "log", "data": str, "containerId": str}
    {"type": "started", "containerId": str}
    {"type": "end", "message": str}
    {"type": "error", "message": str}
    {"type": "stopped"}

Client -> server::

    {"type": "start", "containerId": str, "filter"?: str, "tail"?: int,
     "since"?: str}
    {"type": "stop"}
"""

import json
from dataclasses import dataclass
from typing import Optional, Union

from container_logs.constants import DEFAULT_TAIL


class MessageError(ValueError):
  """Raised when a frame is not valid JSON or not a known message shape."""


@dataclass(frozen=True)
class LogMessage:
  """A chunk of log text tagged with the container that produced it."""

  data: str
  container_id: str  # Origin tag, fixed when the tail process was started.


@dataclass(frozen=True)
class StartedMessage:
  container_id: str


@dataclass(frozen=True)
class EndMessage:
  message: str


@dataclass(frozen=True)
class ErrorMessage:
  message: str


@dataclass(frozen=True)
class StoppedMessage:
  pass


@dataclass(frozen=True)
class StartRequest:
  """Ask the server to (re)start tailing ``container_id``."""

  container_id: str
  filter: str = ""
  tail: int = DEFAULT_TAIL
  since: Optional[str] = None


@dataclass(frozen=True)
class StopRequest:
  pass


ServerMessage = Union[
  LogMessage, StartedMessage, EndMessage, ErrorMessage, StoppedMessage
]
ClientMessage = Union[StartRequest, StopRequest]


def encode(message):
  """Serialize a server or client message to its JSON wire form."""
  if isinstance(message, LogMessage):
    payload = {
      "type": "log",
      "data": message.data,
      "containerId": message.container_id,
    }
  elif isinstance(message, StartedMessage):
    payload = {"type": "started", "containerId": message.container_id}
  elif isinstance(message, EndMessage):
    payload = {"type": "end", "message": message.message}
  elif isinstance(message, ErrorMessage):
    payload = {"type": "error", "message": message.message}
  elif isinstance(message, StoppedMessage):
    payload = {"type": "stopped"}
  elif isinstance(message, StartRequest):
    payload = {
      "type": "start",
      "containerId": message.container_id,
      "tail": message.tail,
    }
    if message.filter:
      payload["filter"] = message.filter
    if message.since:
      payload["since"] = message.since
  elif isinstance(message, StopRequest):
    payload = {"type": "stop"}
  else:
    raise TypeError(f"Cannot encode {type(message).__name__}")
  return json.dumps(payload)


def _load(raw):
  if isinstance(raw, bytes):
    raw = raw.decode("utf-8", errors="replace")
  try:
    obj = json.loads(raw)
  except (TypeError, json.JSONDecodeError) as e:
    raise MessageError(f"Invalid JSON frame: {e}") from e
  if not isinstance(obj, dict):
    raise MessageError("Frame must be a JSON object")
  kind = obj.get("type")
  if not isinstance(kind, str):
    raise MessageError("Frame is missing a 'type' field")
  return kind, obj


def _require_str(obj, key, allow_empty=False):
  value = obj.get(key)
  if not isinstance(value, str) or (not allow_empty and not value):
    raise MessageError(f"'{obj.get('type')}' message requires a string '{key}'")
  return value


def _optional_str(obj, key):
  value = obj.get(key)
  if value is None:
    return None
  if not isinstance(value, str):
    raise MessageError(f"'{key}' must be a string")
  return value


def decode_server_message(raw) -> ServerMessage:
  """Parse a server -> client frame.

  Args:
      raw: JSON text (or bytes) as received from the socket.

  Returns:
      Exactly one of the ServerMessage variants.

  Raises:
      MessageError: On invalid JSON, an unknown ``type``, or a missing
          required field. A ``log`` frame without an origin tag is rejected.
  """
  kind, obj = _load(raw)
  if kind == "log":
    return LogMessage(
      data=_require_str(obj, "data", allow_empty=True),
      container_id=_require_str(obj, "containerId"),
    )
  if kind == "started":
    return StartedMessage(container_id=_require_str(obj, "containerId"))
  if kind == "end":
    return EndMessage(message=_optional_str(obj, "message") or "")
  if kind == "error":
    return ErrorMessage(message=_optional_str(obj, "message") or "")
  if kind == "stopped":
    return StoppedMessage()
  raise MessageError(f"Unknown server message type: {kind!r}")


def decode_client_message(raw) -> ClientMessage:
  """Parse a client -> server frame. Raises MessageError when invalid."""
  kind, obj = _load(raw)
  if kind == "start":
    tail = obj.get("tail", DEFAULT_TAIL)
    if tail is None:
      tail = DEFAULT_TAIL
    if isinstance(tail, bool) or not isinstance(tail, int) or tail < 0:
      raise MessageError("'tail' must be a non-negative integer")
    return StartRequest(
      container_id=_require_str(obj, "containerId"),
      filter=_optional_str(obj, "filter") or "",
      tail=tail,
      since=_optional_str(obj, "since") or None,
    )
  if kind == "stop":
    return StopRequest()
  raise MessageError(f"Unknown client message type: {kind!r}")
