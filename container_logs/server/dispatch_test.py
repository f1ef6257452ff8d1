"""Tests for container_logs.server.dispatch — filtering and origin tags."""

import asyncio
from unittest import mock

from absl.testing import absltest, parameterized

from container_logs.core.messages import LogMessage
from container_logs.server.dispatch import LogDispatcher, filter_lines


class TestFilterLines(parameterized.TestCase):
  @parameterized.named_parameters(
    dict(
      testcase_name="case_insensitive",
      text="INFO ok\nERROR bad\nerror again",
      keyword="Error",
      expected="ERROR bad\nerror again",
    ),
    dict(
      testcase_name="no_match",
      text="a\nb",
      keyword="zzz",
      expected="",
    ),
    dict(
      testcase_name="empty_keyword_passthrough",
      text="a\nb\n",
      keyword="",
      expected="a\nb\n",
    ),
    dict(
      testcase_name="none_keyword_passthrough",
      text="a",
      keyword=None,
      expected="a",
    ),
  )
  def test_filter(self, text, keyword, expected):
    self.assertEqual(filter_lines(text, keyword), expected)


class TestLogDispatcher(absltest.TestCase):
  def test_tags_with_captured_container(self):
    send = mock.Mock()
    dispatcher = LogDispatcher(send, "c1", "")

    sent = asyncio.run(dispatcher.dispatch("hello\n"))

    self.assertTrue(sent)
    send.assert_called_once_with(LogMessage(data="hello\n", container_id="c1"))

  def test_suppresses_filtered_out_chunk(self):
    send = mock.Mock()
    dispatcher = LogDispatcher(send, "c1", "error")

    self.assertFalse(asyncio.run(dispatcher.dispatch("info\ndebug\n")))
    send.assert_not_called()

  def test_suppresses_whitespace_only_chunk(self):
    send = mock.Mock()
    dispatcher = LogDispatcher(send, "c1")
    self.assertFalse(asyncio.run(dispatcher.dispatch("\n  \n")))
    send.assert_not_called()

  def test_awaits_async_send(self):
    received = []

    async def send(message):
      received.append(message)

    dispatcher = LogDispatcher(send, "c9", "WARN")
    asyncio.run(dispatcher.dispatch("warn: disk\ninfo: ok"))

    self.assertEqual(received, [LogMessage("warn: disk", "c9")])


if __name__ == "__main__":
  absltest.main()
