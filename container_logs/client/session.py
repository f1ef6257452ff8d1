"""Client session: wires transport, batching, and the retained log list.

Switching what is being watched follows a fixed sequence so that output
from the previous container can never reach the new view:

1. Update the selected Subject (switching container also drops the filter).
2. clear() the batching buffer: pending messages are discarded and the
   flush timer is cancelled.
3. clear_logs() on the retained list.
4. Send a ``start`` request for the new Subject.

Any straggler ``log`` messages produced by the old tail process still carry
the old container id and are rejected by LogStream.process_batch().
"""

import asyncio
import collections
import dataclasses
from typing import Callable, Optional

from absl import logging

from container_logs.client.batching import BatchingBuffer
from container_logs.client.log_stream import LogStream
from container_logs.client.transport import ConnectionState, LogStreamTransport
from container_logs.constants import (
  DEFAULT_MAX_LOGS,
  DEFAULT_TAIL,
  RECONNECT_DELAY_SECONDS,
)
from container_logs.core.messages import (
  EndMessage,
  ErrorMessage,
  StartedMessage,
  StartRequest,
  StopRequest,
  StoppedMessage,
)

_MAX_NOTICES = 50


def _log_resubscribe_failure(task):
  if task.cancelled():
    return
  exc = task.exception()
  if exc is not None:
    logging.warning("Restarting stream after reconnect failed", exc_info=exc)


@dataclasses.dataclass(frozen=True)
class Subject:
  """What the session is watching: a container and an optional keyword."""

  container_id: str = ""
  filter: str = ""


class LogViewerSession:
  """One user's view of the log stream.

  Attributes:
      subject: Currently selected Subject.
      log_stream: The retained log list and its controls.
      buffer: Batching buffer fed by the transport.
      transport: Websocket connection to the server.
      streaming_container: Container id of the last ``started`` ack.
      notices: Recent ``end`` / ``error`` texts, newest last.
  """

  def __init__(
    self,
    url,
    scheduler=None,
    max_logs=DEFAULT_MAX_LOGS,
    tail=DEFAULT_TAIL,
    connect=None,
    reconnect_delay=RECONNECT_DELAY_SECONDS,
    on_update: Optional[Callable[["LogViewerSession"], None]] = None,
    subject: Optional[Subject] = None,
  ):
    self.subject = subject or Subject()
    self.tail = tail
    self.log_stream = LogStream(max_logs=max_logs)
    self.buffer = BatchingBuffer(self._on_flush, scheduler=scheduler)
    self.transport = LogStreamTransport(
      url, self.buffer, reconnect_delay=reconnect_delay, connect=connect
    )
    self.transport.subscribe(self._on_control)
    self.transport.on_state_change(self._on_state_change)
    self.streaming_container = None
    self.notices = collections.deque(maxlen=_MAX_NOTICES)
    self._on_update = on_update
    self._resubscribe_task = None

  @property
  def connected(self):
    return self.transport.connected

  @property
  def logs(self):
    return self.log_stream.logs

  def _notify(self):
    if self._on_update is not None:
      self._on_update(self)

  def _on_flush(self, snapshot):
    self.log_stream.process_batch(snapshot, self.subject.container_id)
    self._notify()

  def _on_control(self, message):
    if isinstance(message, StartedMessage):
      self.streaming_container = message.container_id
    elif isinstance(message, StoppedMessage):
      self.streaming_container = None
    elif isinstance(message, (EndMessage, ErrorMessage)):
      self.notices.append(message.message)
      if isinstance(message, EndMessage):
        self.streaming_container = None
    self._notify()

  def _on_state_change(self, state):
    if state is ConnectionState.OPEN and self.subject.container_id:
      # The server forgot our stream when the old connection dropped.
      self._reset_view()
      self._resubscribe_task = asyncio.ensure_future(self._request_start())
      self._resubscribe_task.add_done_callback(_log_resubscribe_failure)
    elif state is ConnectionState.CLOSED:
      self.streaming_container = None
    self._notify()

  def _reset_view(self):
    self.buffer.clear()
    self.log_stream.clear_logs()

  async def _request_start(self):
    return await self.transport.send(
      StartRequest(
        container_id=self.subject.container_id,
        filter=self.subject.filter,
        tail=self.tail,
      )
    )

  async def select_container(self, container_id):
    """Switch to another container, dropping the current filter.

    Returns:
        bool: True if a start request was sent.
    """
    self.subject = Subject(container_id=container_id)
    self._reset_view()
    self._notify()
    if not container_id:
      return False
    logging.info("Switching to container %s", container_id)
    return await self._request_start()

  async def change_filter(self, keyword):
    """Restart the current container's stream with a new keyword.

    Returns:
        bool: True if a start request was sent.
    """
    self.subject = dataclasses.replace(self.subject, filter=keyword)
    if not self.subject.container_id:
      return False
    self._reset_view()
    self._notify()
    return await self._request_start()

  async def stop(self):
    """Ask the server to stop the current stream."""
    return await self.transport.send(StopRequest())

  def set_streaming(self, enabled):
    self.log_stream.set_streaming(enabled)

  def handle_max_logs_change(self, raw):
    return self.log_stream.handle_max_logs_change(raw)

  def clear_logs(self):
    self.log_stream.clear_logs()
    self._notify()

  def start(self):
    return self.transport.start()

  async def close(self):
    if self._resubscribe_task is not None:
      self._resubscribe_task.cancel()
    await self.transport.close()

  async def __aenter__(self):
    self.start()
    return self

  async def __aexit__(self, *exc_info):
    await self.close()
