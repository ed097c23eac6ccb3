"""Shared test fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable
from datetime import datetime
from unittest.mock import patch

import pytest
from rich.console import Console

from keepalive.commands import CommandResult
from keepalive.config import KeepAliveConfig, build_config
from keepalive.probes import ProbeResult, ServiceProbe

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)


class FakeRunner:
    """Command runner answering from a table; unknown commands fail like a missing binary."""

    def __init__(self, responses: dict[str, CommandResult] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[str] = []

    def install(self, *binaries: str) -> FakeRunner:
        for name in binaries:
            self.responses[f"command -v {name}"] = CommandResult(success=True, output=f"/usr/bin/{name}")
        return self

    def ok(self, command: str, output: str = "") -> FakeRunner:
        self.responses[command] = CommandResult(success=True, output=output)
        return self

    def fail(self, command: str, error: str = "boom") -> FakeRunner:
        self.responses[command] = CommandResult(success=False, error=error)
        return self

    def __call__(self, command: str) -> CommandResult:
        self.calls.append(command)
        return self.responses.get(
            command, CommandResult(success=False, error=f"Command failed: {command}"),
        )


class StubProbe(ServiceProbe):
    """Probe returning a canned result (or raising) without touching the shell."""

    def __init__(
        self,
        name: str,
        result: ProbeResult | None = None,
        on_check: Callable[[], None] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.result = result or ProbeResult.not_installed()
        self.on_check = on_check
        self.error = error
        self.calls = 0

    def check(self) -> ProbeResult:
        self.calls += 1
        if self.on_check:
            self.on_check()
        if self.error:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def posix_platform():
    """Pin command strings to their POSIX variants."""
    with patch("keepalive.commands.is_windows", return_value=False), \
         patch("keepalive.probes.is_windows", return_value=False):
        yield


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def console() -> Console:
    return Console(
        file=io.StringIO(), width=200, color_system=None,
        highlight=False, emoji=False, soft_wrap=True,
    )


@pytest.fixture
def make_config() -> Callable[..., KeepAliveConfig]:
    def _make(**kwargs: object) -> KeepAliveConfig:
        kwargs.setdefault("interval_seconds", 5)
        return build_config(**kwargs)
    return _make


def output_lines(console: Console) -> list[str]:
    return console.file.getvalue().split("\n")[:-1]  # type: ignore[attr-defined]
