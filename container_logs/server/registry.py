"""Per-connection tail process bookkeeping.

The registry maps each live websocket session to at most one running
:class:`~container_logs.backend.process_stream.TailProcess`. It is owned by
the FastAPI app (``app.state.registry``) and is only touched from the event
loop, so no thread locking is needed. Each session carries an
``asyncio.Lock`` that serializes start/stop requests: a new stream is only
spawned after the previous one has been terminated and deregistered.
"""

import asyncio
import inspect
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from absl import logging

from container_logs.backend.process_stream import TailProcess
from container_logs.constants import DEFAULT_TAIL
from container_logs.core.messages import (
  EndMessage,
  ErrorMessage,
  StartedMessage,
)
from container_logs.server.dispatch import LogDispatcher


@dataclass
class _Session:
  send: Callable[[Any], Any]
  lock: asyncio.Lock = field(default_factory=asyncio.Lock)
  process: Optional[Any] = None


class SessionRegistry:
  """Tracks the active tail process of every connected client."""

  def __init__(self, spawn=None, runtime=None):
    """
    Args:
        spawn: Coroutine function with the signature of TailProcess.spawn.
        runtime: Container CLI forwarded to spawn; detected when None.
    """
    self._spawn = spawn or TailProcess.spawn
    self._runtime = runtime
    self._sessions: dict[str, _Session] = {}

  def __len__(self):
    """Number of sessions that currently have a registered stream."""
    return sum(1 for s in self._sessions.values() if s.process is not None)

  def __contains__(self, session_id):
    return session_id in self._sessions

  def open_session(self, send, session_id=None):
    """Register a new client connection.

    Args:
        send: Callable (sync or async) delivering a ServerMessage to the
            client.
        session_id: Optional explicit id; a random one is generated
            otherwise.

    Returns:
        str: The session id used by all other methods.
    """
    session_id = session_id or uuid.uuid4().hex
    if session_id in self._sessions:
      raise ValueError(f"Session {session_id} is already open")
    self._sessions[session_id] = _Session(send=send)
    logging.info("Session %s opened", session_id)
    return session_id

  async def close_session(self, session_id):
    """Stop any stream and forget the session. Unknown ids are ignored."""
    session = self._sessions.get(session_id)
    if session is None:
      return
    async with session.lock:
      self._terminate(session)
      self._sessions.pop(session_id, None)
    logging.info("Session %s closed", session_id)

  def active(self, session_id):
    """Return the registered TailProcess for a session, or None."""
    session = self._sessions.get(session_id)
    return session.process if session else None

  async def start_stream(
    self,
    session_id,
    container_id,
    filter="",
    tail=DEFAULT_TAIL,
    since=None,
  ):
    """Replace the session's stream with a tail of ``container_id``.

    The previous process (if any) is terminated and deregistered before the
    new one is spawned. On success a ``started`` message is sent; on spawn
    failure an ``error`` message is sent and the session is left without a
    stream.

    Returns:
        The new TailProcess, or None if it could not be started.
    """
    session = self._sessions.get(session_id)
    if session is None:
      raise KeyError(f"Unknown session {session_id}")

    async with session.lock:
      self._terminate(session)

      dispatcher = LogDispatcher(session.send, container_id, filter)

      async def on_chunk(_process, chunk):
        await dispatcher.dispatch(chunk)

      async def on_exit(process, returncode):
        await self._handle_exit(session_id, process, returncode)

      try:
        process = await self._spawn(
          container_id,
          tail=tail,
          since=since,
          on_chunk=on_chunk,
          on_exit=on_exit,
          runtime=self._runtime,
        )
      except (OSError, RuntimeError) as e:
        logging.warning("Failed to start tail of %s: %s", container_id, e)
        await _deliver(session, ErrorMessage(message=str(e)))
        return None

      session.process = process
      logging.info(
        "Session %s streaming %s (filter=%r)", session_id, container_id, filter
      )
      await _deliver(session, StartedMessage(container_id=container_id))
      process.start()
      return process

  async def stop_stream(self, session_id):
    """Terminate and deregister the session's stream, if there is one.

    Returns:
        bool: True if a stream was stopped.
    """
    session = self._sessions.get(session_id)
    if session is None:
      return False
    async with session.lock:
      return self._terminate(session)

  def _terminate(self, session):
    process = session.process
    if process is None:
      return False
    session.process = None
    process.terminate()
    logging.info("Stopped tail of %s", process.container_id)
    return True

  async def _handle_exit(self, session_id, process, returncode):
    session = self._sessions.get(session_id)
    if session is None or session.process is not process:
      # Replaced or stopped; its successor (if any) stays registered.
      logging.debug("Ignoring exit of replaced tail %r", process)
      return
    session.process = None
    await _deliver(
      session, EndMessage(message=f"Log stream ended with code {returncode}")
    )


async def _deliver(session, message):
  result = session.send(message)
  if inspect.isawaitable(result):
    await result
