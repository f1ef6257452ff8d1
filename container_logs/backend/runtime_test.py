"""Tests for container_logs.backend.runtime — detection and one-shot queries."""

import os
import subprocess
from unittest import mock

from absl.testing import absltest

from container_logs.backend import runtime
from container_logs.backend.runtime import Container
from container_logs.constants import RUNTIME_ENV_VAR
from container_logs.test_utils import create_mock_subprocess_run


def _which(*available):
  return lambda name: f"/usr/bin/{name}" if name in available else None


class TestDetectRuntime(absltest.TestCase):
  def setUp(self):
    super().setUp()
    self.enterContext(mock.patch.dict(os.environ, clear=False))
    os.environ.pop(RUNTIME_ENV_VAR, None)

  def test_prefers_docker(self):
    with mock.patch("shutil.which", side_effect=_which("docker", "podman")):
      self.assertEqual(runtime.detect_runtime(), "docker")

  def test_falls_back_to_podman(self):
    with mock.patch("shutil.which", side_effect=_which("podman")):
      self.assertEqual(runtime.detect_runtime(), "podman")

  def test_none_installed(self):
    with mock.patch("shutil.which", side_effect=_which()):
      self.assertIsNone(runtime.detect_runtime())

  def test_forced_runtime(self):
    os.environ[RUNTIME_ENV_VAR] = "Podman"
    with mock.patch("shutil.which", side_effect=_which("docker", "podman")):
      self.assertEqual(runtime.detect_runtime(), "podman")

  def test_forced_runtime_missing(self):
    os.environ[RUNTIME_ENV_VAR] = "podman"
    with mock.patch("shutil.which", side_effect=_which("docker")):
      self.assertIsNone(runtime.detect_runtime())

  def test_invalid_forced_runtime(self):
    os.environ[RUNTIME_ENV_VAR] = "containerd"
    with self.assertRaisesRegex(RuntimeError, "must be one of"):
      runtime.detect_runtime()

  def test_require_runtime_raises_when_missing(self):
    with mock.patch("shutil.which", side_effect=_which()):
      with self.assertRaisesRegex(RuntimeError, "Neither Docker nor Podman"):
        runtime.require_runtime()


class TestParsePsOutput(absltest.TestCase):
  def test_parses_rows(self):
    stdout = (
      "abc123|web|nginx:latest|Up 2 hours|running\n"
      "def456|db|postgres:16|Exited (0) 3 days ago|exited\n"
    )
    self.assertEqual(
      runtime.parse_ps_output(stdout),
      [
        Container("abc123", "web", "nginx:latest", "Up 2 hours", "running"),
        Container(
          "def456", "db", "postgres:16", "Exited (0) 3 days ago", "exited"
        ),
      ],
    )

  def test_skips_blank_and_short_lines(self):
    stdout = "\nabc|web|nginx|Up|running\nbroken|line\n"
    result = runtime.parse_ps_output(stdout)
    self.assertLen(result, 1)
    self.assertEqual(result[0].name, "web")

  def test_empty(self):
    self.assertEqual(runtime.parse_ps_output(""), [])


class TestQueries(absltest.TestCase):
  def setUp(self):
    super().setUp()
    self.enterContext(
      mock.patch.object(runtime, "require_runtime", return_value="docker")
    )

  def test_list_containers(self):
    with create_mock_subprocess_run(
      stdout="abc|web|nginx|Up 1 minute|running\n"
    ) as mock_run:
      containers = runtime.list_containers()

    self.assertEqual(containers[0].to_dict()["state"], "running")
    args = mock_run.call_args.args[0]
    self.assertEqual(args[:4], ["docker", "ps", "-a", "--format"])

  def test_build_logs_command(self):
    self.assertEqual(
      runtime.build_logs_command("podman", "web", since="1h", tail=5),
      ["podman", "logs", "--since", "1h", "--tail", "5", "web"],
    )
    self.assertEqual(
      runtime.build_logs_command("docker", "web"), ["docker", "logs", "web"]
    )
    self.assertEqual(
      runtime.build_logs_command("docker", "web", tail=0),
      ["docker", "logs", "--tail", "0", "web"],
    )

  def test_get_container_logs_joins_streams_and_filters(self):
    with create_mock_subprocess_run(
      stdout="INFO boot\nERROR disk\n", stderr="error: net\n"
    ):
      logs = runtime.get_container_logs("web", filter="error")

    self.assertEqual(logs, "ERROR disk\nerror: net")

  def test_get_container_logs_unfiltered(self):
    with create_mock_subprocess_run(stdout="a\n", stderr="b\n"):
      self.assertEqual(runtime.get_container_logs("web"), "a\nb\n")

  def test_command_failure_becomes_runtime_error(self):
    error = subprocess.CalledProcessError(
      1, ["docker", "logs", "nope"], stderr="No such container: nope\n"
    )
    with mock.patch("subprocess.run", side_effect=error):
      with self.assertRaisesRegex(RuntimeError, "No such container: nope"):
        runtime.get_container_logs("nope")

  def test_missing_binary_becomes_runtime_error(self):
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("docker")):
      with self.assertRaisesRegex(RuntimeError, "Failed to run docker"):
        runtime.list_containers()


if __name__ == "__main__":
  absltest.main()
