"""Tests for the start-up system snapshot."""

from __future__ import annotations

import socket
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from keepalive.sysinfo import (
    build_tree,
    bytes_to_gb,
    collect_system_info,
    format_uptime,
    get_disk_info,
    get_ip_addresses,
)


def test_format_uptime() -> None:
    assert format_uptime(0) == "0h 0m"
    assert format_uptime(3 * 3600 + 25 * 60 + 59) == "3h 25m"


def test_bytes_to_gb_floors() -> None:
    assert bytes_to_gb(1024 ** 3 * 2.9) == 2


class TestBuildTree:
    def test_dirs_first_and_git_ignored(self, tmp_path: Path) -> None:
        root = tmp_path / "proj"
        (root / ".git").mkdir(parents=True)
        (root / "src").mkdir()
        (root / "src" / "main.py").write_text("")
        (root / "README.md").write_text("")
        (root / "a.txt").write_text("")

        assert build_tree(root).splitlines() == [
            "proj/",
            "├── src/",
            "│   └── main.py",
            "├── a.txt",
            "└── README.md",
        ]

    def test_depth_limit(self, tmp_path: Path) -> None:
        deep = tmp_path / "r" / "a" / "b" / "c" / "d"
        deep.mkdir(parents=True)
        lines = build_tree(tmp_path / "r", max_depth=1).splitlines()
        assert lines == ["r/", "└── a/", "    └── b/"]

    def test_truncation_marker(self, tmp_path: Path) -> None:
        root = tmp_path / "many"
        root.mkdir()
        for i in range(10):
            (root / f"f{i}.txt").write_text("")
        lines = build_tree(root, max_entries=3).splitlines()
        assert lines[-1] == "... (tree truncated)"
        assert len(lines) == 1 + 3 + 1


def test_disk_info_for_tmp(tmp_path: Path) -> None:
    disk = get_disk_info(tmp_path)
    assert disk is not None
    assert disk.total_gb >= disk.free_gb >= 0


def test_disk_info_missing_path(tmp_path: Path) -> None:
    assert get_disk_info(tmp_path / "does-not-exist") is None


def test_ip_addresses_skip_loopback() -> None:
    addrs = {
        "lo": [SimpleNamespace(family=socket.AF_INET, address="127.0.0.1")],
        "eth0": [
            SimpleNamespace(family=socket.AF_INET, address="10.0.0.5"),
            SimpleNamespace(family=socket.AF_INET6, address="fe80::1%eth0"),
            SimpleNamespace(family=-1, address="00:11:22:33:44:55"),
        ],
        "eth1": [SimpleNamespace(family=socket.AF_INET, address="10.0.0.5")],
    }
    with patch("keepalive.sysinfo.psutil.net_if_addrs", return_value=addrs):
        assert get_ip_addresses() == ["10.0.0.5", "fe80::1"]


def test_collect_system_info(tmp_path: Path) -> None:
    info = collect_system_info(tmp_path)
    assert info.cwd == str(tmp_path)
    assert info.cpus >= 1
    assert info.memory_total_gb >= info.memory_free_gb >= 0
    assert info.tree.splitlines()[0] == f"{tmp_path.name}/"
