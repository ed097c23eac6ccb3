"""Actions keep-alive — periodic status + local service health checks for CI jobs."""

__version__ = "1.0.0"

from .config import KeepAliveConfig, build_config
from .probes import ProbeRegistry, ProbeResult, ServiceProbe
from .scheduler import HeartbeatScheduler
