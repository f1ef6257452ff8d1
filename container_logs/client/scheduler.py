"""Cancelable one-shot timers.

Batching and reconnect logic take a scheduler instead of calling
``loop.call_later`` directly, so they can be driven deterministically in
tests (see :class:`container_logs.test_utils.FakeScheduler`).
"""

import asyncio
from typing import Callable, Optional, Protocol


class Timer:
  """Owned handle for one scheduled callback.

  ``cancel()`` is idempotent and safe after the callback has run.
  """

  def __init__(self, callback: Callable[[], None]):
    self._callback = callback
    self._handle = None
    self._done = False

  @property
  def active(self) -> bool:
    """True until the callback has run or the timer was cancelled."""
    return not self._done

  def attach(self, handle):
    """Bind the underlying event-loop handle (anything with cancel())."""
    self._handle = handle

  def fire(self):
    if self._done:
      return
    self._done = True
    self._callback()

  def cancel(self):
    if self._done:
      return
    self._done = True
    if self._handle is not None:
      self._handle.cancel()
      self._handle = None


class Scheduler(Protocol):
  """Anything that can run a callback after a delay."""

  def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
    ...


class AsyncioScheduler:
  """Scheduler backed by the running asyncio event loop."""

  def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
    self._loop = loop

  def call_later(self, delay, callback):
    loop = self._loop or asyncio.get_running_loop()
    timer = Timer(callback)
    timer.attach(loop.call_later(delay, timer.fire))
    return timer
