"""Host snapshot printed once at start-up."""

from __future__ import annotations

import logging
import os
import platform
import shutil
import socket
import time
from dataclasses import dataclass, field
from pathlib import Path

import psutil

logger = logging.getLogger(__name__)

GB = 1024 ** 3

TREE_MAX_DEPTH = 2
TREE_MAX_ENTRIES = 120
TREE_IGNORED = frozenset({".git"})


@dataclass
class DiskInfo:
    total_gb: int
    free_gb: int


@dataclass
class SystemInfo:
    platform: str
    arch: str
    hostname: str
    cwd: str
    cpus: int
    memory_total_gb: int
    memory_free_gb: int
    uptime_seconds: int
    disk: DiskInfo | None = None
    ips: list[str] = field(default_factory=list)
    tree: str = ""


def bytes_to_gb(n: float) -> int:
    return int(n // GB)


def format_uptime(seconds: float) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def get_disk_info(path: str | Path) -> DiskInfo | None:
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        logger.debug("disk usage unavailable for %s: %s", path, e)
        return None
    if usage.total <= 0:
        return None
    return DiskInfo(total_gb=bytes_to_gb(usage.total), free_gb=bytes_to_gb(usage.free))


def get_ip_addresses() -> list[str]:
    """Sorted, de-duplicated, non-loopback IPv4/IPv6 addresses."""
    ips: set[str] = set()
    for entries in psutil.net_if_addrs().values():
        for entry in entries:
            if entry.family not in (socket.AF_INET, socket.AF_INET6) or not entry.address:
                continue
            address = entry.address.split("%", 1)[0]  # drop IPv6 zone id
            if address.startswith("127.") or address == "::1":
                continue
            ips.add(address)
    return sorted(ips)


def build_tree(
    root: str | Path,
    max_depth: int = TREE_MAX_DEPTH,
    max_entries: int = TREE_MAX_ENTRIES,
) -> str:
    """Directory tree: directories first, then by name, capped by depth and entry count."""
    root = Path(root)
    count = 0
    truncated = False

    def walk(current: Path, prefix: str, depth: int) -> list[str]:
        nonlocal count, truncated
        if depth > max_depth or truncated:
            return []
        try:
            entries = [e for e in current.iterdir() if e.name not in TREE_IGNORED]
        except OSError:
            return [f"{prefix}└── [permission denied]"]
        entries.sort(key=lambda e: (not _is_dir(e), e.name.lower(), e.name))

        lines: list[str] = []
        for i, entry in enumerate(entries):
            if count >= max_entries:
                truncated = True
                break
            count += 1
            is_last = i == len(entries) - 1
            is_dir = _is_dir(entry)
            lines.append(f"{prefix}{'└── ' if is_last else '├── '}{entry.name}{'/' if is_dir else ''}")
            if is_dir and depth < max_depth and not truncated:
                lines.extend(walk(entry, prefix + ("    " if is_last else "│   "), depth + 1))
        return lines

    lines = [f"{root.name or str(root)}/", *walk(root, "", 0)]
    if truncated:
        lines.append("... (tree truncated)")
    return "\n".join(lines)


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def collect_system_info(cwd: str | Path | None = None) -> SystemInfo:
    cwd = str(cwd or os.getcwd())
    memory = psutil.virtual_memory()
    return SystemInfo(
        platform=platform.system().lower(),
        arch=platform.machine(),
        hostname=socket.gethostname(),
        cwd=cwd,
        cpus=os.cpu_count() or 1,
        memory_total_gb=bytes_to_gb(memory.total),
        memory_free_gb=bytes_to_gb(memory.available),
        uptime_seconds=int(time.time() - psutil.boot_time()),
        disk=get_disk_info(cwd),
        ips=get_ip_addresses(),
        tree=build_tree(cwd),
    )
