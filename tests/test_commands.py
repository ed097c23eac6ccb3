"""Tests for shell command execution."""

from __future__ import annotations

import sys

import pytest

from keepalive.commands import CommandResult, command_exists, run_command

from .conftest import FakeRunner

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh")


@posix_only
class TestRunCommand:
    def test_success_strips_output(self) -> None:
        assert run_command("echo '  hello  '") == CommandResult(success=True, output="hello")

    def test_failure_keeps_stderr(self) -> None:
        result = run_command("echo broken >&2; exit 3")
        assert result.success is False
        assert result.error is not None
        assert result.error.startswith("Command failed: ")
        assert "broken" in result.error

    def test_missing_binary_is_failure_not_exception(self) -> None:
        result = run_command("definitely-not-a-real-binary-xyz --version")
        assert result.success is False

    def test_timeout(self) -> None:
        result = run_command("sleep 5", timeout_sec=0.2)
        assert result.success is False
        assert "timed out" in (result.error or "")


class TestCommandExists:
    def test_posix_query(self, fake_runner: FakeRunner) -> None:
        fake_runner.install("docker")
        assert command_exists("docker", fake_runner) is True
        assert command_exists("ngrok", fake_runner) is False
        assert fake_runner.calls == ["command -v docker", "command -v ngrok"]

    @posix_only
    def test_real_shell(self) -> None:
        assert command_exists("sh") is True
        assert command_exists("definitely-not-a-real-binary-xyz") is False
