"""Auto-reconnecting websocket client for the ``/ws/logs`` endpoint.

``log`` messages are handed to a :class:`BatchingBuffer`; every other
message kind is delivered to subscribers immediately so connection and
error state is never delayed by the batch window.

State machine::

    CONNECTING -> OPEN -> CLOSED -> (fixed delay) -> CONNECTING -> ...

The reconnect delay is fixed, without backoff growth.
"""

import asyncio
import enum
from contextlib import suppress

import websockets
from absl import logging
from websockets.exceptions import ConnectionClosed, WebSocketException

from container_logs.constants import RECONNECT_DELAY_SECONDS
from container_logs.core.messages import (
  LogMessage,
  MessageError,
  decode_server_message,
  encode,
)


def _call_each(callbacks, arg):
  """Invoke every callback; a failing one is logged and skipped."""
  for callback in list(callbacks):
    try:
      callback(arg)
    except Exception:
      logging.warning("Callback %r failed", callback, exc_info=True)


class ConnectionState(enum.Enum):
  CONNECTING = "connecting"
  OPEN = "open"
  CLOSED = "closed"


class LogStreamTransport:
  """Single logical connection to the log streaming server.

  Attributes:
      url: Websocket URL, e.g. ``ws://127.0.0.1:3001/ws/logs``.
      reconnect_delay: Seconds to wait after a drop before reconnecting.
      last_control: Most recent non-log message received, or None.
  """

  def __init__(
    self,
    url,
    buffer,
    reconnect_delay=RECONNECT_DELAY_SECONDS,
    connect=None,
  ):
    self.url = url
    self.reconnect_delay = reconnect_delay
    self.last_control = None
    self._buffer = buffer
    self._connect = connect or websockets.connect
    self._ws = None
    self._state = ConnectionState.CLOSED
    self._closing = False
    self._task = None
    self._subscribers = []
    self._state_listeners = []

  @property
  def state(self) -> ConnectionState:
    return self._state

  @property
  def connected(self) -> bool:
    return self._state is ConnectionState.OPEN

  def subscribe(self, callback):
    """Register ``callback(message)`` for non-log messages."""
    self._subscribers.append(callback)

  def on_state_change(self, callback):
    """Register ``callback(state)`` for connection state transitions."""
    self._state_listeners.append(callback)

  def _set_state(self, state):
    if state is self._state:
      return
    self._state = state
    _call_each(self._state_listeners, state)

  def start(self):
    """Run the connection loop in a background task."""
    if self._task is None or self._task.done():
      self._closing = False
      self._task = asyncio.ensure_future(self.run())
    return self._task

  async def run(self):
    """Connect, receive until dropped, wait, repeat until close()."""
    while not self._closing:
      self._set_state(ConnectionState.CONNECTING)
      try:
        async with self._connect(self.url) as ws:
          self._ws = ws
          logging.info("Websocket connected to %s", self.url)
          self._set_state(ConnectionState.OPEN)
          async for raw in ws:
            self.handle_raw(raw)
      except ConnectionClosed as e:
        logging.info("Websocket connection closed: %s", e)
      except (OSError, asyncio.TimeoutError, WebSocketException) as e:
        logging.warning("Websocket connection to %s failed: %s", self.url, e)
      finally:
        self._ws = None

      self._set_state(ConnectionState.CLOSED)
      if self._closing:
        break
      logging.info("Reconnecting in %.1fs...", self.reconnect_delay)
      await asyncio.sleep(self.reconnect_delay)

  def handle_raw(self, raw):
    """Route one inbound frame. Malformed frames are logged and dropped."""
    try:
      message = decode_server_message(raw)
    except MessageError as e:
      logging.warning("Invalid websocket message %r: %s", raw, e)
      return

    if isinstance(message, LogMessage):
      self._buffer.push(message)
      return

    self.last_control = message
    _call_each(self._subscribers, message)

  async def send(self, message):
    """Send a client message if connected.

    Nothing is queued: when the socket is not open the message is dropped
    with a warning.

    Returns:
        bool: True if the message was written to the socket.
    """
    ws = self._ws
    if ws is None or not self.connected:
      logging.warning(
        "Websocket is not connected; dropping %s", type(message).__name__
      )
      return False
    try:
      await ws.send(encode(message))
    except ConnectionClosed as e:
      logging.warning("Websocket closed while sending: %s", e)
      return False
    return True

  async def close(self):
    """Stop reconnecting, close the socket, and cancel the batch timer."""
    self._closing = True
    ws = self._ws
    if ws is not None:
      with suppress(ConnectionClosed, OSError):
        await ws.close()
    task, self._task = self._task, None
    if task is not None and not task.done():
      task.cancel()
      with suppress(asyncio.CancelledError):
        await task
    self._ws = None
    self._set_state(ConnectionState.CLOSED)
    self._buffer.close()

  async def __aenter__(self):
    self.start()
    return self

  async def __aexit__(self, *exc_info):
    await self.close()
