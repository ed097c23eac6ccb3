"""Service probes — availability and status of local tools the CI job relies on.

Each probe reports a ProbeResult and never raises for a missing tool:
an absent binary is the normal ``not_installed`` result. Probes are held in
a ProbeRegistry whose order is the default service order for a report.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .commands import CommandRunner, command_exists, is_windows, run_command

logger = logging.getLogger(__name__)


# ── Models ───────────────────────────────────────────────────────────────────


class ProbeStatus(str, Enum):
    NOT_INSTALLED = "not_installed"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"
    AVAILABLE = "available"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProbeResult:
    """Result of one probe invocation. Backends may report any status string."""

    available: bool
    status: str
    details: Mapping[str, str] | None = None
    message: str | None = None

    @classmethod
    def not_installed(cls) -> ProbeResult:
        return cls(available=False, status=ProbeStatus.NOT_INSTALLED.value)

    @classmethod
    def error(cls, message: str | None) -> ProbeResult:
        return cls(available=True, status=ProbeStatus.ERROR.value, message=message)


# ── Probes ───────────────────────────────────────────────────────────────────


class ServiceProbe(ABC):
    """A health check for one external service."""

    name: str = ""
    binary: str = ""

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self.runner = runner

    def installed(self) -> bool:
        return command_exists(self.binary, self.runner)

    @abstractmethod
    def check(self) -> ProbeResult:
        ...


class TailscaleProbe(ServiceProbe):
    """VPN daemon: structured status first, plain status on unparsable output."""

    name = "tailscale"
    binary = "tailscale"

    def check(self) -> ProbeResult:
        if not self.installed():
            return ProbeResult.not_installed()

        result = self.runner("tailscale status --json")
        if not result.success:
            return ProbeResult.error(result.error)

        try:
            status = json.loads(result.output)
            if not isinstance(status, dict):
                raise ValueError("status payload is not an object")
        except ValueError:
            logger.debug("tailscale status --json unparsable, falling back to plain status")
            simple = self.runner("tailscale status")
            return ProbeResult(
                available=True,
                status=ProbeStatus.RUNNING.value if simple.success else ProbeStatus.STOPPED.value,
            )

        details = {
            "version": str(status.get("Version") or ""),
            "self": _describe_self(status.get("Self")),
        }
        return ProbeResult(
            available=True,
            status=str(status.get("BackendState") or ProbeStatus.UNKNOWN.value),
            details=details,
        )


def _describe_self(node: Any) -> str:
    """Collapse tailscale's Self node to one identifying string."""
    if isinstance(node, dict):
        ips = node.get("TailscaleIPs") or []
        for key in ("HostName", "DNSName"):
            if node.get(key):
                return str(node[key])
        if ips:
            return str(ips[0])
        return ""
    return "" if node is None else str(node)


class DockerProbe(ServiceProbe):
    """Container engine: counts running containers."""

    name = "docker"
    binary = "docker"

    def check(self) -> ProbeResult:
        if not self.installed():
            return ProbeResult.not_installed()

        result = self.runner('docker ps --format "{{.ID}}"')
        if not result.success:
            return ProbeResult.error(result.error)

        containers = [line for line in result.output.splitlines() if line.strip()]
        return ProbeResult(
            available=True,
            status=ProbeStatus.RUNNING.value,
            details={"containers": str(len(containers))},
        )


class NgrokProbe(ServiceProbe):
    """Tunnel daemon: looks for a live process. Absence is ``stopped``, not an error."""

    name = "ngrok"
    binary = "ngrok"

    def check(self) -> ProbeResult:
        if not self.installed():
            return ProbeResult.not_installed()

        if is_windows():
            ps_cmd = 'tasklist /FI "IMAGENAME eq ngrok.exe"'
        else:
            ps_cmd = "pgrep -f ngrok"

        result = self.runner(ps_cmd)
        running = result.success and bool(result.output)
        return ProbeResult(
            available=True,
            status=ProbeStatus.RUNNING.value if running else ProbeStatus.STOPPED.value,
        )


class SSHProbe(ServiceProbe):
    """Remote shell: reports ``available`` when the client exists.

    Does not look for a running sshd, unlike the other probes.
    """

    name = "ssh"
    binary = "ssh"

    def check(self) -> ProbeResult:
        if not self.installed():
            return ProbeResult.not_installed()
        return ProbeResult(available=True, status=ProbeStatus.AVAILABLE.value)


# ── Registry ─────────────────────────────────────────────────────────────────

PROBE_TYPES: tuple[type[ServiceProbe], ...] = (TailscaleProbe, DockerProbe, NgrokProbe, SSHProbe)


class ProbeRegistry:
    """Fixed, ordered mapping from service name to probe."""

    def __init__(self, probes: list[ServiceProbe]) -> None:
        self._probes: dict[str, ServiceProbe] = {}
        for probe in probes:
            self._probes[probe.name] = probe

    @classmethod
    def default(cls, runner: CommandRunner = run_command) -> ProbeRegistry:
        return cls([probe_type(runner) for probe_type in PROBE_TYPES])

    def get(self, name: str) -> ServiceProbe | None:
        """Look up a probe; unknown names return None."""
        return self._probes.get(name)

    def names(self) -> list[str]:
        return list(self._probes)

    def __contains__(self, name: object) -> bool:
        return name in self._probes

    def __iter__(self) -> Iterator[ServiceProbe]:
        return iter(self._probes.values())

    def __len__(self) -> int:
        return len(self._probes)
