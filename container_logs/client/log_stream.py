"""Retained log list, streaming toggle, and retention bound validation."""

import datetime
from dataclasses import dataclass

from container_logs.constants import DEFAULT_MAX_LOGS, MAX_LOGS_LIMIT

REQUIRED_ERROR = "Required"
INVALID_NUMBER_ERROR = "Invalid number"
OUT_OF_RANGE_ERROR = f"Must be 0~{MAX_LOGS_LIMIT}"


@dataclass(frozen=True)
class LogEntry:
  """One displayed log chunk.

  Attributes:
      timestamp: When the batch containing this entry was processed; all
          entries of one batch share it.
      text: Raw log text, possibly several newline-separated lines.
  """

  timestamp: datetime.datetime
  text: str


def validate_max_logs(raw):
  """Validate a retention bound typed by the user.

  Returns:
      (value, error): ``value`` is the parsed bound or None; ``error`` is
      "" when valid.
  """
  if raw == "":
    return None, REQUIRED_ERROR
  if not (raw.isascii() and raw.isdigit()):
    return None, INVALID_NUMBER_ERROR
  value = int(raw)
  if value > MAX_LOGS_LIMIT:
    return None, OUT_OF_RANGE_ERROR
  return value, ""


class LogStream:
  """Owns the entries shown to the user.

  Batches are accepted only while streaming is enabled and a container is
  selected, and only messages tagged with the selected container survive.
  The list is bounded by ``max_logs`` (0 = unbounded), evicting oldest
  entries first.
  """

  def __init__(self, max_logs=DEFAULT_MAX_LOGS, clock=None):
    self._logs: list[LogEntry] = []
    self._streaming = True
    self._max_logs = max_logs
    self._max_logs_input = str(max_logs)
    self._max_logs_error = ""
    self._clock = clock or datetime.datetime.now

  @property
  def logs(self) -> tuple[LogEntry, ...]:
    return tuple(self._logs)

  @property
  def streaming(self) -> bool:
    return self._streaming

  @property
  def max_logs(self) -> int:
    return self._max_logs

  @property
  def max_logs_input(self) -> str:
    return self._max_logs_input

  @property
  def max_logs_error(self) -> str:
    return self._max_logs_error

  def process_batch(self, snapshot, selected_container):
    """Append the messages of ``snapshot`` that belong to the selection.

    Args:
        snapshot: BatchSnapshot (or any iterable of LogMessage).
        selected_container: Currently selected container id, "" for none.

    Returns:
        int: Number of entries appended.
    """
    messages = tuple(snapshot)
    if not messages or not self._streaming or not selected_container:
      return 0

    now = self._clock()
    entries = [
      LogEntry(timestamp=now, text=m.data)
      for m in messages
      if m.data and m.container_id == selected_container
    ]
    if not entries:
      return 0

    self._logs.extend(entries)
    if self._max_logs > 0 and len(self._logs) > self._max_logs:
      del self._logs[: len(self._logs) - self._max_logs]
    return len(entries)

  def handle_max_logs_change(self, raw):
    """Record user input for the bound; commit it only when valid.

    Returns:
        str: The validation error, "" when the new bound was committed.
    """
    self._max_logs_input = raw
    value, error = validate_max_logs(raw)
    self._max_logs_error = error
    if not error:
      self._max_logs = value
    return error

  def clear_logs(self):
    self._logs = []

  def set_streaming(self, enabled):
    self._streaming = bool(enabled)
