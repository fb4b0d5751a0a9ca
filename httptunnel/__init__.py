"""
httptunnel - raw TCP tunnels through HTTP CONNECT proxies

Provides:
- CONNECT handshake with streaming response parsing and a deadline
- Classified failures (proxy auth, forbidden, upstream unreachable, timeouts...)
- A socket-like tunnel handle that replays bytes received with the headers
- Reachability probes
- SSH sessions through the proxy via paramiko
"""

__version__ = "0.1.0"

from .core import (
    HTTPTunnelError,
    ConfigError,
    TunnelError,
    setup_logging,
    get_telemetry,
)

from .domain.tunnel import (
    ProxyEndpoint,
    TargetAddress,
    FailureReason,
    Established,
    Failed,
    TunnelOutcome,
    TunnelSocket,
    TunnelService,
    establish_tunnel,
    probe_reachability,
)

from .client import RemoteClient, ClientConfig

__all__ = [
    # Version
    "__version__",
    # Errors
    "HTTPTunnelError",
    "ConfigError",
    "TunnelError",
    # Logging
    "setup_logging",
    # Telemetry
    "get_telemetry",
    # Models
    "ProxyEndpoint",
    "TargetAddress",
    "FailureReason",
    "Established",
    "Failed",
    "TunnelOutcome",
    "TunnelSocket",
    # Operations
    "TunnelService",
    "establish_tunnel",
    "probe_reachability",
    # SSH
    "RemoteClient",
    "ClientConfig",
]
