"""Unit tests for the command executor."""

import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

from operator_audit.core.executor import CommandExecutor, CommandResult, SubprocessExecutor
from operator_audit.utils.errors import CommandError


class TestCommandResult:
    def test_ok(self):
        assert CommandResult(command=["true"], returncode=0).ok is True
        assert CommandResult(command=["false"], returncode=1).ok is False

    def test_check_returns_self(self):
        result = CommandResult(command=["true"], returncode=0, stdout="done")
        assert result.check() is result

    def test_check_raises(self):
        result = CommandResult(command=["opm", "render"], returncode=1, stderr="boom")
        with pytest.raises(CommandError, match="boom") as exc_info:
            result.check()
        assert exc_info.value.returncode == 1

    def test_check_falls_back_to_stdout(self):
        result = CommandResult(command=["opm"], returncode=1, stdout="usage")
        with pytest.raises(CommandError, match="usage"):
            result.check()


class TestSubprocessExecutor:
    def test_is_a_command_executor(self):
        assert isinstance(SubprocessExecutor(), CommandExecutor)

    @patch("operator_audit.core.executor.subprocess.run")
    def test_captures_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="[]", stderr="")

        result = SubprocessExecutor().run("docker", ["inspect", "img"])

        assert result.ok
        assert result.stdout == "[]"
        assert result.command == ["docker", "inspect", "img"]
        mock_run.assert_called_once_with(
            ["docker", "inspect", "img"],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=None,
        )

    @patch("operator_audit.core.executor.subprocess.run")
    def test_failure_is_returned(self, mock_run):
        mock_run.return_value = MagicMock(returncode=125, stdout="", stderr="no such image")

        result = SubprocessExecutor().run("docker", ["rmi", "img"])

        assert result.returncode == 125
        assert result.stderr == "no such image"

    @patch("operator_audit.core.executor.subprocess.run")
    def test_missing_program(self, mock_run):
        mock_run.side_effect = FileNotFoundError()

        result = SubprocessExecutor().run("podman", ["pull", "img"])

        assert result.returncode == 127
        assert "command not found" in result.stderr

    @patch("operator_audit.core.executor.subprocess.run")
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["operator-sdk"], timeout=5)

        result = SubprocessExecutor(timeout=5).run("operator-sdk", ["scorecard", "dir"])

        assert result.returncode == 124
        assert mock_run.call_args.kwargs["timeout"] == 5

    @patch("operator_audit.core.executor.subprocess.run")
    def test_call_timeout_overrides_default(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        SubprocessExecutor(timeout=5).run("tar", ["-xvf", "a.tar"], timeout=30)

        assert mock_run.call_args.kwargs["timeout"] == 30

    def test_undecodable_output_is_replaced(self):
        script = "import sys; sys.stdout.buffer.write(b'\\xff\\xfe file\\n'); sys.stderr.buffer.write(b'\\xe9')"

        result = SubprocessExecutor().run(sys.executable, ["-c", script])

        assert result.ok
        assert result.stdout == "\ufffd\ufffd file\n"
        assert result.stderr == "\ufffd"


def test_fake_executor_matches_protocol(fake_executor):
    assert isinstance(fake_executor, CommandExecutor)
