"""Report lines — glyphs, status classification and the per-tick line builders.

Builders return ``rich.text.Text`` so colours stay cosmetic: ``Text.plain``
is the operator-facing contract and is what the tests assert on.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from rich.text import Text

from .docker_logs import RecentLogs
from .probes import ProbeResult

DEFAULT_MESSAGE = "Remote access still running..."
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
HEARTBEAT_EVERY = 10

INDENT = "   "
LOG_INDENT = "      "


@dataclass(frozen=True)
class Glyphs:
    clock: str
    rocket: str
    check: str
    cross: str
    warning: str
    info: str
    heart: str
    docker: str
    unknown: str


EMOJI_GLYPHS = Glyphs(
    clock="⏰", rocket="🚀", check="✅", cross="❌",
    warning="⚠️", info="ℹ️", heart="💓", docker="🐳", unknown="⚠️",
)

# Used with --no-emoji; some markers have plain fallbacks, others vanish.
PLAIN_GLYPHS = Glyphs(
    clock="", rocket="", check="✓", cross="✗",
    warning="!", info="-", heart="♥", docker="", unknown="?",
)


def glyphs_for(emoji: bool) -> Glyphs:
    return EMOJI_GLYPHS if emoji else PLAIN_GLYPHS


class StatusClass(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"


_STATUS_STYLE = {
    StatusClass.SUCCESS: "green",
    StatusClass.FAILURE: "red",
    StatusClass.NEUTRAL: "yellow",
}


def classify_status(status: object) -> StatusClass:
    """Three-way split: contains "running" → success, "error" → failure, else neutral."""
    normalized = str(status or "").lower()
    if "running" in normalized:
        return StatusClass.SUCCESS
    if "error" in normalized:
        return StatusClass.FAILURE
    return StatusClass.NEUTRAL


def _marker(cls: StatusClass, glyphs: Glyphs) -> str:
    if cls is StatusClass.SUCCESS:
        return glyphs.check
    if cls is StatusClass.FAILURE:
        return glyphs.cross
    return glyphs.info


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


def format_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def flatten_details(details: Mapping[str, object]) -> str:
    return ", ".join(f"{key}={value}" for key, value in details.items())


# ── Line builders ────────────────────────────────────────────────────────────


def header_line(
    iteration: int,
    glyphs: Glyphs,
    message: str | None = None,
    timestamp: str | None = None,
) -> Text:
    prefix = _join(glyphs.clock, timestamp or "")
    text = Text()
    if prefix:
        text.append(prefix, style="bold")
        text.append(" ")
    text.append(message or DEFAULT_MESSAGE)
    text.append(" (")
    text.append(f"#{iteration}", style="yellow")
    text.append(")")
    return text


def unknown_service_line(service: str, glyphs: Glyphs) -> Text:
    return Text(f"{INDENT}{glyphs.unknown} {service}: Unknown service")


def unavailable_line(service: str, result: ProbeResult, glyphs: Glyphs) -> Text:
    return Text(f"{INDENT}{glyphs.info} {service}: {result.status}")


def probe_line(service: str, result: ProbeResult, glyphs: Glyphs, verbose: bool = False) -> Text:
    cls = classify_status(result.status)
    text = Text(f"{INDENT}{_marker(cls, glyphs)} {service}: ")
    text.append(str(result.status), style=_STATUS_STYLE[cls])
    if verbose and result.details:
        text.append(f" ({flatten_details(result.details)})")
    return text


def probe_crash_line(service: str, error: BaseException, glyphs: Glyphs, verbose: bool = False) -> Text:
    text = Text(f"{INDENT}{glyphs.cross} {service}: ")
    text.append("error", style="red")
    if verbose:
        text.append(f" ({type(error).__name__}: {error})")
    return text


def error_message_lines(result: ProbeResult) -> list[Text]:
    """Raw command error text under a failed probe (verbose only)."""
    if not result.message:
        return []
    return [Text(f"{LOG_INDENT}{line}", style="dim") for line in result.message.splitlines() if line]


def log_block_lines(logs: RecentLogs, window: int, glyphs: Glyphs, verbose: bool = False) -> list[Text]:
    lines = [Text(f"{INDENT}{_join(glyphs.docker, f'docker compose logs --since {window}s:')}")]

    if not logs.available:
        lines.append(Text(f"{LOG_INDENT}{glyphs.warning} Unable to fetch docker logs", style="yellow"))
        if verbose and logs.error:
            lines.append(Text(f"{LOG_INDENT}{logs.error}"))
        return lines

    if not logs.output:
        lines.append(Text(f"{LOG_INDENT}(No new logs)"))
    else:
        lines.extend(Text(f"{LOG_INDENT}{line}") for line in logs.output.splitlines())

    if verbose and logs.source == "docker" and logs.compose_error:
        lines.append(Text(f"{LOG_INDENT}{glyphs.info} docker compose unavailable, used docker logs fallback"))
    return lines


def is_heartbeat_iteration(iteration: int) -> bool:
    return iteration > 0 and iteration % HEARTBEAT_EVERY == 0


def heartbeat_line(iteration: int, glyphs: Glyphs) -> Text:
    return Text(f"{INDENT}{glyphs.heart} Heartbeat: Workflow healthy ({iteration} iterations)")


def shutdown_lines(signal_name: str | None, iteration: int, glyphs: Glyphs) -> list[Text]:
    reason = f"Received {signal_name}" if signal_name else "Stop requested"
    return [
        Text(""),
        Text(f"{glyphs.warning} {reason}, shutting down gracefully...", style="yellow"),
        Text(f"{glyphs.check} Keep alive stopped. Total iterations: {iteration}"),
        Text(""),
    ]
