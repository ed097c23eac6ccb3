"""Shell command execution — structured results that never raise."""

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one shell command."""

    success: bool
    output: str = ""
    error: str | None = None


class CommandRunner(Protocol):
    def __call__(self, command: str) -> CommandResult: ...


def is_windows() -> bool:
    return sys.platform == "win32"


def run_command(command: str, timeout_sec: float | None = None) -> CommandResult:
    """Run a command string through the platform shell and capture its output.

    /bin/sh on POSIX, cmd.exe on Windows (``shell=True`` picks COMSPEC there).
    ``timeout_sec=None`` waits for the command to complete.
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            executable=None if is_windows() else "/bin/sh",
            capture_output=True,
            text=True,
            timeout=timeout_sec,
            encoding="utf-8",
            errors="replace",
        )
    except subprocess.TimeoutExpired:
        logger.debug("Command timed out after %ss: %s", timeout_sec, command)
        return CommandResult(success=False, error=f"Command timed out after {timeout_sec}s: {command}")
    except OSError as e:
        logger.debug("Command could not start: %s (%s)", command, e)
        return CommandResult(success=False, error=f"Error: {type(e).__name__}: {e}")

    logger.debug("CMD exit=%d: %s", result.returncode, command)
    if result.returncode != 0:
        error = f"Command failed: {command}"
        stderr = (result.stderr or "").strip()
        if stderr:
            error = f"{error}\n{stderr}"
        return CommandResult(success=False, error=error)

    return CommandResult(success=True, output=(result.stdout or "").strip())


def command_exists(name: str, runner: CommandRunner = run_command) -> bool:
    """True when ``name`` resolves on the search path (``command -v`` / ``where``)."""
    check = f"where {name}" if is_windows() else f"command -v {name}"
    return runner(check).success
