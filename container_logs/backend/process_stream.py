"""Live ``logs -f`` child processes.

A :class:`TailProcess` supervises one ``<runtime> logs -f`` child for one
container. Output from both stdout and stderr is decoded incrementally and
forwarded to a chunk callback; once both pipes hit EOF and the child is
reaped, the exit callback fires exactly once with the return code.

Callbacks may be plain functions or coroutines. Coroutine callbacks are
awaited before the next chunk is read, so delivery order per pipe matches
emission order.
"""

import asyncio
import codecs
import inspect

from absl import logging

from container_logs.backend.runtime import require_runtime
from container_logs.constants import DEFAULT_TAIL

_READ_SIZE = 64 * 1024


def build_follow_command(runtime, container_id, tail=DEFAULT_TAIL, since=None):
  """Build the argv for a follow-mode ``logs`` call."""
  args = [runtime, "logs", "-f", "--tail", str(tail)]
  if since:
    args += ["--since", since]
  args.append(container_id)
  return args


async def _maybe_await(result):
  if inspect.isawaitable(result):
    await result


class TailProcess:
  """Handle to a running tail child process.

  Attributes:
      container_id: The container being tailed.
      returncode: Exit status once the child has been reaped, else None.
  """

  def __init__(self, container_id, process, on_chunk, on_exit):
    self.container_id = container_id
    self._process = process
    self._on_chunk = on_chunk
    self._on_exit = on_exit
    self._task = None
    self._terminated = False

  @classmethod
  async def spawn(
    cls,
    container_id,
    tail=DEFAULT_TAIL,
    since=None,
    *,
    on_chunk,
    on_exit,
    runtime=None,
  ):
    """Start ``logs -f`` for a container.

    The returned handle does not read any output until start() is called,
    which lets the caller register it first.

    Args:
        container_id: Container ID or name.
        tail: Number of historical lines to emit before following.
        since: Optional ``--since`` value.
        on_chunk: Called as ``on_chunk(process, text)`` per decoded chunk.
        on_exit: Called as ``on_exit(process, returncode)`` once.
        runtime: Container CLI to use; detected when omitted.

    Raises:
        RuntimeError: If no container runtime is available.
        OSError: If the runtime binary cannot be executed.
    """
    runtime = runtime or require_runtime()
    args = build_follow_command(runtime, container_id, tail, since)
    logging.info("Starting tail: %s", " ".join(args))
    process = await asyncio.create_subprocess_exec(
      *args,
      stdin=asyncio.subprocess.DEVNULL,
      stdout=asyncio.subprocess.PIPE,
      stderr=asyncio.subprocess.PIPE,
    )
    return cls(container_id, process, on_chunk, on_exit)

  @property
  def pid(self):
    return self._process.pid

  @property
  def returncode(self):
    return self._process.returncode

  @property
  def running(self):
    return self._process.returncode is None and not self._terminated

  def start(self):
    """Begin forwarding output. Calling it more than once is a no-op."""
    if self._task is None:
      self._task = asyncio.ensure_future(self._pump())
    return self._task

  def terminate(self):
    """Ask the child to exit.

    Deregistration happens in the caller; the child may keep emitting for a
    short while, and its exit callback still fires once it is reaped.
    Safe to call repeatedly or after the child has exited.
    """
    if self._terminated or self._process.returncode is not None:
      return
    self._terminated = True
    try:
      self._process.terminate()
    except ProcessLookupError:
      pass  # Already gone.

  async def wait(self):
    """Wait until the output pump has finished and return the exit code."""
    if self._task is not None:
      await self._task
    return await self._process.wait()

  async def _read(self, stream):
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
      data = await stream.read(_READ_SIZE)
      if not data:
        tail_text = decoder.decode(b"", final=True)
        if tail_text:
          await _maybe_await(self._on_chunk(self, tail_text))
        return
      text = decoder.decode(data)
      if text:
        await _maybe_await(self._on_chunk(self, text))

  async def _pump(self):
    try:
      await asyncio.gather(
        self._read(self._process.stdout), self._read(self._process.stderr)
      )
    except asyncio.CancelledError:
      self.terminate()
      raise
    except Exception:
      logging.warning(
        "Reading output of %s failed unexpectedly",
        self.container_id,
        exc_info=True,
      )
      self.terminate()
    returncode = await self._process.wait()
    logging.info("Tail of %s exited with code %s", self.container_id, returncode)
    await _maybe_await(self._on_exit(self, returncode))

  def __repr__(self):
    return f"TailProcess(container_id={self.container_id!r}, pid={self.pid})"
