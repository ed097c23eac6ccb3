"""Heartbeat scheduler — prints a status report now and then every interval.

One tick runs immediately on start, then one per interval, never two at once:
the loop awaits each tick (run on a single worker thread so signals are still
handled) before arming the next wait. SIGINT/SIGTERM only set the
cancellation flag; the loop notices it after the current tick or wakes
from its wait, and the shutdown summary is printed exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.text import Text

from .commands import CommandRunner, run_command
from .config import KeepAliveConfig
from .docker_logs import RecentLogs, fetch_recent_logs, lookback_window
from .probes import ProbeRegistry
from .report import (
    StatusClass,
    classify_status,
    error_message_lines,
    format_timestamp,
    glyphs_for,
    header_line,
    heartbeat_line,
    is_heartbeat_iteration,
    log_block_lines,
    probe_crash_line,
    probe_line,
    shutdown_lines,
    unavailable_line,
    unknown_service_line,
)

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class SchedulerState:
    iteration: int = 0
    cancelled: bool = False
    signal_name: str | None = None


def make_console() -> Console:
    """Console for the report stream: no markup guessing, no wrapping of log lines."""
    return Console(highlight=False, emoji=False, soft_wrap=True)


class HeartbeatScheduler:
    """Runs report cycles for one configuration until cancelled.

    Lifecycle:
        scheduler = HeartbeatScheduler(config)
        iterations = asyncio.run(scheduler.run())
    """

    def __init__(
        self,
        config: KeepAliveConfig,
        registry: ProbeRegistry | None = None,
        console: Console | None = None,
        runner: CommandRunner = run_command,
        log_fetcher: Callable[[int], RecentLogs] | None = None,
        clock: Callable[[], datetime] | None = None,
        interval: float | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or ProbeRegistry.default(runner)
        self.console = console or make_console()
        self.interval = interval if interval is not None else config.interval_seconds
        self.glyphs = glyphs_for(config.display.emoji)
        self.state = SchedulerState()
        self._fetch_logs = log_fetcher or (lambda window: fetch_recent_logs(window, runner))
        self._clock = clock or datetime.now
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="keepalive-tick")
        self._loop: asyncio.AbstractEventLoop | None = None
        self._wakeup: asyncio.Event | None = None
        self._fallback_handlers: dict[int, Any] = {}
        self._stopped = False

    # -- public API ------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self.state.cancelled

    def services(self) -> list[str]:
        """Configured services in order, or every registered probe."""
        return list(self.config.services) or self.registry.names()

    def request_stop(self, signal_name: str | None = None) -> None:
        """Cancel the run. Safe from signal handlers and from the tick thread."""
        if self.state.cancelled:
            return
        self.state.cancelled = True
        self.state.signal_name = signal_name
        logger.info("Stop requested (%s)", signal_name or "programmatic")
        loop, wakeup = self._loop, self._wakeup
        if loop is not None and wakeup is not None and not loop.is_closed():
            loop.call_soon_threadsafe(wakeup.set)

    async def run(self, install_signal_handlers: bool = True) -> int:
        """Tick until cancelled; returns the final iteration count."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._wakeup = asyncio.Event()
        if self.state.cancelled:
            self._wakeup.set()
        if install_signal_handlers:
            self._install_signal_handlers(loop)

        logger.info("Heartbeat scheduler started (interval=%ss)", self.interval)
        try:
            while not self.state.cancelled:
                await loop.run_in_executor(self._executor, self._safe_tick)
                if self.state.cancelled:
                    break
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            if install_signal_handlers:
                self._remove_signal_handlers(loop)
            self._executor.shutdown(wait=False)
            self._shutdown()
            self._loop = None
        return self.state.iteration

    # -- report cycle ------------------------------------------------------------

    def tick(self) -> None:
        """One report cycle: header, health checks, heartbeat, separator."""
        self.state.iteration += 1
        iteration = self.state.iteration

        timestamp = format_timestamp(self._clock()) if self.config.display.timestamp else None
        self._print(header_line(iteration, self.glyphs, self.config.custom_message, timestamp))

        if self.config.health_checks:
            for service in self.services():
                try:
                    self._report_service(service)
                except Exception as e:
                    logger.exception("Health check crashed: %s", service)
                    self._print(probe_crash_line(service, e, self.glyphs, self.config.verbose))

        if is_heartbeat_iteration(iteration):
            self._print(heartbeat_line(iteration, self.glyphs))

        self._print(Text(""))

    def _safe_tick(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Tick #%d failed", self.state.iteration)

    def _report_service(self, service: str) -> None:
        probe = self.registry.get(service)
        if probe is None:
            self._print(unknown_service_line(service, self.glyphs))
            return

        result = probe.check()
        verbose = self.config.verbose

        if not result.available:
            if verbose:
                self._print(unavailable_line(service, result, self.glyphs))
            return

        self._print(probe_line(service, result, self.glyphs, verbose))

        status_class = classify_status(result.status)
        if verbose and status_class is StatusClass.FAILURE:
            for line in error_message_lines(result):
                self._print(line)

        if service == "docker" and status_class is StatusClass.SUCCESS:
            window = lookback_window(self.config.interval_seconds)
            logs = self._fetch_logs(window)
            for line in log_block_lines(logs, window, self.glyphs, verbose):
                self._print(line)

    # -- shutdown ------------------------------------------------------------------

    def _shutdown(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self.state.cancelled = True
        for line in shutdown_lines(self.state.signal_name, self.state.iteration, self.glyphs):
            self._print(line)
        logger.info("Heartbeat scheduler stopped after %d iterations", self.state.iteration)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_stop, sig.name)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler
                self._fallback_handlers[sig] = signal.signal(sig, self._on_signal)

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            if sig in self._fallback_handlers:
                signal.signal(sig, self._fallback_handlers.pop(sig))
            else:
                loop.remove_signal_handler(sig)

    def _on_signal(self, signum: int, frame: Any) -> None:
        self.request_stop(signal.Signals(signum).name)

    def _print(self, line: Text) -> None:
        self.console.print(line)
