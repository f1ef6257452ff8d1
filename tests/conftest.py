"""Shared fixtures for integration tests."""

import asyncio
import contextlib

import pytest

from container_logs.core.messages import encode
from container_logs.server import app as server_app
from container_logs.server.registry import SessionRegistry
from container_logs.test_utils import FakeScheduler, FakeSpawner


class LoopbackSocket:
  """Client socket wired straight into a SessionRegistry session.

  Frames sent by the client go through the server's frame handler; messages
  the server delivers are queued for the client's receive loop.
  """

  def __init__(self, registry):
    self.registry = registry
    self.sent = []
    self._inbox = asyncio.Queue()
    self.session_id = registry.open_session(self._deliver)

  async def _deliver(self, message):
    self._inbox.put_nowait(encode(message))

  async def send(self, text):
    self.sent.append(text)
    await server_app._handle_frame(
      self.registry, self.session_id, self._deliver, text
    )

  async def close(self):
    self._inbox.put_nowait(None)

  def drop(self):
    self._inbox.put_nowait(None)

  def __aiter__(self):
    return self

  async def __anext__(self):
    item = await self._inbox.get()
    if item is None:
      raise StopAsyncIteration
    return item


class Loopback:
  """In-process client/server pair sharing one registry."""

  def __init__(self, spawner):
    self.spawner = spawner
    self.registry = SessionRegistry(spawn=spawner, runtime="docker")
    self.sockets = []

  @contextlib.asynccontextmanager
  async def connect(self, url):
    ws = LoopbackSocket(self.registry)
    self.sockets.append(ws)
    try:
      yield ws
    finally:
      await self.registry.close_session(ws.session_id)


@pytest.fixture
def spawner():
  return FakeSpawner()


@pytest.fixture
def loopback(spawner):
  return Loopback(spawner)


@pytest.fixture
def scheduler():
  return FakeScheduler()


@pytest.fixture
def runtime_env(monkeypatch, mocker):
  """Force the docker runtime regardless of what is installed."""
  monkeypatch.setenv("CONTAINER_LOGS_RUNTIME", "docker")
  return mocker.patch(
    "shutil.which", side_effect=lambda name: f"/usr/bin/{name}"
  )
