"""Tests for container_logs.client.log_stream — retention and validation."""

import datetime

from absl.testing import absltest, parameterized

from container_logs.client.batching import BatchSnapshot
from container_logs.client.log_stream import LogEntry, LogStream
from container_logs.core.messages import LogMessage

_NOW = datetime.datetime(2024, 1, 1, 12, 0, 0)


def _snapshot(texts, container_id="c1", sequence=1):
  return BatchSnapshot(
    messages=tuple(LogMessage(data=t, container_id=container_id) for t in texts),
    sequence=sequence,
  )


def _stream(max_logs=500):
  return LogStream(max_logs=max_logs, clock=lambda: _NOW)


class TestProcessBatch(absltest.TestCase):
  def test_appends_matching_messages_with_shared_timestamp(self):
    stream = _stream()
    added = stream.process_batch(_snapshot(["a", "b"]), "c1")

    self.assertEqual(added, 2)
    self.assertEqual(
      stream.logs, (LogEntry(_NOW, "a"), LogEntry(_NOW, "b"))
    )

  def test_rejects_messages_from_other_containers(self):
    stream = _stream()
    snapshot = BatchSnapshot(
      messages=(
        LogMessage("old", "c1"),
        LogMessage("new", "c2"),
        LogMessage("old again", "c1"),
      ),
      sequence=1,
    )

    stream.process_batch(snapshot, "c2")

    self.assertEqual([e.text for e in stream.logs], ["new"])

  def test_drops_empty_payloads(self):
    stream = _stream()
    stream.process_batch(_snapshot(["", "x"]), "c1")
    self.assertEqual([e.text for e in stream.logs], ["x"])

  def test_no_selection_discards_batch(self):
    stream = _stream()
    self.assertEqual(stream.process_batch(_snapshot(["a"]), ""), 0)
    self.assertEqual(stream.logs, ())

  def test_empty_snapshot_is_noop(self):
    stream = _stream()
    stream.process_batch(_snapshot(["a"]), "c1")
    stream.process_batch(_snapshot([]), "c1")
    self.assertLen(stream.logs, 1)

  def test_streaming_off_discards_whole_batch(self):
    stream = _stream()
    stream.process_batch(_snapshot(["keep"]), "c1")
    stream.set_streaming(False)

    added = stream.process_batch(_snapshot([f"m{i}" for i in range(5)]), "c1")

    self.assertEqual(added, 0)
    self.assertLen(stream.logs, 1)
    self.assertFalse(stream.streaming)

  def test_streaming_back_on_accepts_batches(self):
    stream = _stream()
    stream.set_streaming(False)
    stream.set_streaming(True)
    stream.process_batch(_snapshot(["a"]), "c1")
    self.assertLen(stream.logs, 1)


class TestRetention(absltest.TestCase):
  def test_fifo_eviction_keeps_most_recent(self):
    stream = _stream(max_logs=3)
    stream.process_batch(_snapshot(["1", "2"]), "c1")
    stream.process_batch(_snapshot(["3", "4", "5"]), "c1")

    self.assertEqual([e.text for e in stream.logs], ["3", "4", "5"])

  def test_1200_lines_with_bound_500(self):
    stream = _stream(max_logs=500)
    lines = [f"line {i}" for i in range(1, 1201)]
    for start in range(0, 1200, 100):
      stream.process_batch(_snapshot(lines[start : start + 100]), "c1")

    self.assertLen(stream.logs, 500)
    self.assertEqual(stream.logs[0].text, "line 701")
    self.assertEqual(stream.logs[-1].text, "line 1200")

  def test_zero_bound_is_unbounded(self):
    stream = _stream(max_logs=0)
    stream.process_batch(_snapshot([str(i) for i in range(1000)]), "c1")
    self.assertLen(stream.logs, 1000)

  def test_smaller_bound_applies_on_next_append(self):
    stream = _stream(max_logs=10)
    stream.process_batch(_snapshot([str(i) for i in range(10)]), "c1")
    stream.handle_max_logs_change("4")
    self.assertLen(stream.logs, 10)

    stream.process_batch(_snapshot(["10"]), "c1")
    self.assertEqual([e.text for e in stream.logs], ["7", "8", "9", "10"])

  def test_clear_logs(self):
    stream = _stream()
    stream.process_batch(_snapshot(["a"]), "c1")
    stream.clear_logs()
    self.assertEqual(stream.logs, ())


class TestMaxLogsValidation(parameterized.TestCase):
  @parameterized.named_parameters(
    dict(testcase_name="empty", raw="", error="Required"),
    dict(testcase_name="letters", raw="abc", error="Invalid number"),
    dict(testcase_name="negative", raw="-1", error="Invalid number"),
    dict(testcase_name="decimal", raw="1.5", error="Invalid number"),
    dict(testcase_name="spaces", raw=" 10", error="Invalid number"),
    dict(testcase_name="too_large", raw="1001", error="Must be 0~1000"),
  )
  def test_invalid_input_keeps_previous_bound(self, raw, error):
    stream = _stream(max_logs=500)

    self.assertEqual(stream.handle_max_logs_change(raw), error)
    self.assertEqual(stream.max_logs_error, error)
    self.assertEqual(stream.max_logs_input, raw)
    self.assertEqual(stream.max_logs, 500)

  @parameterized.parameters(("0", 0), ("1000", 1000), ("42", 42), ("007", 7))
  def test_valid_input_commits(self, raw, expected):
    stream = _stream(max_logs=500)
    stream.handle_max_logs_change("abc")

    self.assertEqual(stream.handle_max_logs_change(raw), "")
    self.assertEqual(stream.max_logs_error, "")
    self.assertEqual(stream.max_logs, expected)

  def test_defaults(self):
    stream = LogStream()
    self.assertEqual(stream.max_logs, 500)
    self.assertEqual(stream.max_logs_input, "500")
    self.assertEqual(stream.max_logs_error, "")
    self.assertTrue(stream.streaming)


if __name__ == "__main__":
  absltest.main()
