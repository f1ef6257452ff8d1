"""Keyword filtering and origin tagging of raw tail output."""

import inspect

from container_logs.core.messages import LogMessage


def filter_lines(text, keyword):
  """Keep only the lines of ``text`` containing ``keyword``, ignoring case.

  An empty keyword disables filtering and returns ``text`` unchanged.
  """
  if not keyword:
    return text
  needle = keyword.lower()
  return "\n".join(
    line for line in text.split("\n") if needle in line.lower()
  )


class LogDispatcher:
  """Turns chunks from one tail process into ``log`` messages.

  A dispatcher is bound to a single tail process. The container id and
  keyword are captured when the stream starts, so chunks that arrive after
  the session has moved on to another container are still tagged with the
  container that produced them and can be discarded by the client.

  Attributes:
      container_id: Origin tag stamped on every message.
      keyword: Filter keyword active for this stream ("" for none).
  """

  def __init__(self, send, container_id, keyword=""):
    self._send = send
    self.container_id = container_id
    self.keyword = keyword or ""

  def build_message(self, chunk):
    """Return the LogMessage for ``chunk``, or None if nothing survives."""
    data = filter_lines(chunk, self.keyword)
    if not data.strip():
      return None
    return LogMessage(data=data, container_id=self.container_id)

  async def dispatch(self, chunk):
    """Filter ``chunk`` and send it. Returns True if a message was sent."""
    message = self.build_message(chunk)
    if message is None:
      return False
    result = self._send(message)
    if inspect.isawaitable(result):
      await result
    return True
