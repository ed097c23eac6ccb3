"""Entry point — `actions-keepalive` console script."""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import sys

from rich.console import Console
from rich.panel import Panel

from . import __version__
from .commands import run_command
from .config import KeepAliveConfig, Settings, build_config, coerce_interval, settings
from .probes import ProbeRegistry
from .report import glyphs_for
from .scheduler import HeartbeatScheduler, make_console
from .sysinfo import SystemInfo, collect_system_info, format_uptime

logger = logging.getLogger(__name__)

EPILOG = """\
examples:
  # Basic usage (keep alive every 5 minutes)
  actions-keepalive

  # Custom interval (every 2 minutes)
  actions-keepalive --interval 120

  # Monitor specific services
  actions-keepalive --services tailscale,docker

  # Custom message with verbose output
  actions-keepalive -m "Building project..." -v

  # Minimal output
  actions-keepalive --no-emoji --no-timestamp

GitHub Actions usage:
  - name: Keep Workflow Alive
    run: actions-keepalive --services tailscale --interval 300
"""


def build_parser(defaults: Settings | None = None) -> argparse.ArgumentParser:
    defaults = defaults or settings
    parser = argparse.ArgumentParser(
        prog="actions-keepalive",
        description="Actions Keep Alive - keep a CI job alive with periodic status and health checks.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-i", "--interval", default=str(defaults.keepalive_interval), metavar="SECONDS",
        help="status update interval in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "-m", "--message", default=defaults.keepalive_message or None,
        help="custom status message",
    )
    parser.add_argument(
        "-s", "--services", default=defaults.keepalive_services, metavar="LIST",
        help="services to monitor, comma-separated (available: tailscale,docker,ngrok,ssh)",
    )
    parser.add_argument("--no-emoji", action="store_true", help="disable emoji in output")
    parser.add_argument("--no-timestamp", action="store_true", help="disable timestamp in output")
    parser.add_argument("--no-health", action="store_true", help="disable health checks")
    parser.add_argument(
        "-v", "--verbose", action=argparse.BooleanOptionalAction, default=defaults.keepalive_verbose,
        help="show detailed information (--no-verbose overrides KEEPALIVE_VERBOSE)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> KeepAliveConfig:
    return build_config(
        interval_seconds=coerce_interval(args.interval),
        services=args.services or (),
        custom_message=args.message or None,
        health_checks=not args.no_health,
        verbose=args.verbose,
        display={"timestamp": not args.no_timestamp, "emoji": not args.no_emoji},
    )


def print_startup(console: Console, config: KeepAliveConfig, info: SystemInfo) -> None:
    glyphs = glyphs_for(config.display.emoji)
    title = " ".join(p for p in (glyphs.rocket, "Actions Keep Alive Started") if p)
    console.print(Panel.fit(f"[bold]{title}[/bold]", border_style="green"))

    interval = config.interval_seconds
    console.print("[cyan]Configuration:[/cyan]")
    console.print(f"  Interval: {interval} seconds ({interval // 60} minutes)")
    if config.services:
        console.print(f"  Monitoring: {', '.join(config.services)}", markup=False)
    console.print(f"  Health Checks: {'Enabled' if config.health_checks else 'Disabled'}")
    console.print(f"  Verbose: {'Yes' if config.verbose else 'No'}")
    console.print()

    console.print("[blue]System Information:[/blue]")
    lines = [
        f"  Platform: {info.platform} ({info.arch})",
        f"  Hostname: {info.hostname}",
        f"  CWD: {info.cwd}",
        f"  CPUs: {info.cpus}",
        f"  Memory: {info.memory_free_gb}GB free / {info.memory_total_gb}GB total",
        f"  Disk: {info.disk.free_gb}GB free / {info.disk.total_gb}GB total" if info.disk else "  Disk: unavailable",
        f"  IPs: {', '.join(info.ips) if info.ips else 'none'}",
        f"  Uptime: {format_uptime(info.uptime_seconds)}",
        "",
        "  CWD Tree:",
        *(f"    {line}" for line in info.tree.splitlines()),
        "",
    ]
    for line in lines:
        console.print(line, markup=False)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = config_from_args(args)
    console = make_console()

    timeout = settings.keepalive_command_timeout or None
    runner = functools.partial(run_command, timeout_sec=timeout) if timeout else run_command

    print_startup(console, config, collect_system_info())

    scheduler = HeartbeatScheduler(
        config,
        registry=ProbeRegistry.default(runner),
        console=console,
        runner=runner,
    )
    asyncio.run(scheduler.run())
    return 0


if __name__ == "__main__":
    sys.exit(main())
