"""Coalescing of high-frequency ``log`` messages into periodic batches.

A busy container can emit thousands of lines per second. Rather than
handing every message to the display layer as it arrives, the
:class:`BatchingBuffer` collects them and publishes one
:class:`BatchSnapshot` per flush interval.

Design Decisions:
    - At most one flush timer is in flight per buffer; it is scheduled by
      the first message after a flush, not polled.
    - clear() cancels that timer and publishes an empty snapshot
      immediately, so nothing accumulated for a previous container can
      surface after the switch.
    - Arrival order is preserved within and across snapshots.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from container_logs.client.scheduler import AsyncioScheduler, Timer
from container_logs.constants import BATCH_INTERVAL_SECONDS
from container_logs.core.messages import LogMessage


@dataclass(frozen=True)
class BatchSnapshot:
  """Immutable result of one flush.

  Attributes:
      messages: The flushed log messages, in arrival order.
      sequence: Monotonic flush counter; each snapshot is consumed once.
  """

  messages: tuple[LogMessage, ...]
  sequence: int

  def __len__(self):
    return len(self.messages)

  def __iter__(self):
    return iter(self.messages)


class BatchingBuffer:
  """Pending-message queue with a single cancelable flush timer.

  Example:
      >>> buffer = BatchingBuffer(on_flush=state.consume)
      >>> buffer.push(LogMessage("line", "c1"))  # schedules a flush
      >>> buffer.clear()  # drops it and publishes an empty snapshot
  """

  def __init__(
    self,
    on_flush: Callable[[BatchSnapshot], None],
    scheduler=None,
    interval: float = BATCH_INTERVAL_SECONDS,
  ):
    """
    Args:
        on_flush: Receives every published BatchSnapshot.
        scheduler: Timer source; defaults to the running asyncio loop.
        interval: Seconds between the first pending message and its flush.
    """
    self._on_flush = on_flush
    self._scheduler = scheduler or AsyncioScheduler()
    self.interval = interval
    self._pending: list[LogMessage] = []
    self._timer: Optional[Timer] = None
    self._sequence = 0

  @property
  def pending(self) -> tuple[LogMessage, ...]:
    return tuple(self._pending)

  @property
  def timer_scheduled(self) -> bool:
    return self._timer is not None and self._timer.active

  def push(self, message: LogMessage) -> None:
    """Queue a message and make sure a flush is scheduled."""
    self._pending.append(message)
    if not self.timer_scheduled:
      self._timer = self._scheduler.call_later(self.interval, self._flush)

  def clear(self) -> None:
    """Drop pending messages, cancel the timer, publish an empty snapshot."""
    self._pending = []
    self._cancel_timer()
    self._publish(())

  def close(self) -> None:
    """Cancel the timer and drop pending messages without publishing."""
    self._pending = []
    self._cancel_timer()

  def _cancel_timer(self):
    if self._timer is not None:
      self._timer.cancel()
      self._timer = None

  def _flush(self):
    self._timer = None
    if not self._pending:
      return
    messages, self._pending = tuple(self._pending), []
    self._publish(messages)

  def _publish(self, messages):
    self._sequence += 1
    self._on_flush(BatchSnapshot(messages=messages, sequence=self._sequence))
