"""Recent container logs — compose first, per-container ``docker logs`` as fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .commands import CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 300


@dataclass(frozen=True)
class RecentLogs:
    available: bool
    source: str | None = None  # "compose" | "docker"
    output: str = ""
    error: str | None = None
    compose_command: str | None = None
    compose_error: str | None = None


def lookback_window(seconds: object) -> int:
    """Whole seconds to look back; anything non-positive or non-numeric → 300."""
    try:
        window = int(seconds)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_WINDOW_SECONDS
    return window if window > 0 else DEFAULT_WINDOW_SECONDS


def compose_logs_command(window: int) -> str:
    return f"docker compose logs --since {window}s --no-color"


def fetch_recent_logs(interval_seconds: object, runner: CommandRunner = run_command) -> RecentLogs:
    """Collect log output from the last ``interval_seconds`` across running containers."""
    if not command_exists("docker", runner):
        return RecentLogs(available=False, error="docker_not_installed")

    window = lookback_window(interval_seconds)
    compose_command = compose_logs_command(window)
    compose = runner(compose_command)
    if compose.success:
        return RecentLogs(
            available=True,
            source="compose",
            output=compose.output,
            compose_command=compose_command,
        )

    logger.debug("docker compose logs failed, falling back to per-container logs")
    listing = runner('docker ps --format "{{.Names}}"')
    if not listing.success:
        return RecentLogs(
            available=False,
            error=compose.error,
            compose_command=compose_command,
        )

    names = [name.strip() for name in listing.output.splitlines() if name.strip()]

    blocks: list[str] = []
    for name in names:
        result = runner(f"docker logs --since {window}s --timestamps {name}")
        if not result.success or not result.output:
            continue
        blocks.append(f"[{name}]")
        blocks.append(result.output)

    return RecentLogs(
        available=True,
        source="docker",
        output="\n".join(blocks).strip(),
        compose_command=compose_command,
        compose_error=compose.error,
    )
