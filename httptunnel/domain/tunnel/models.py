"""
Tunnel domain models
"""
from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

from ...core.exceptions import ConfigError, TunnelError

if TYPE_CHECKING:
    from .stream import TunnelSocket


def _validate_port(port: int, what: str) -> None:
    if isinstance(port, bool) or not isinstance(port, int) or not (1 <= port <= 65535):
        raise ConfigError(f"Invalid {what} port: {port!r}")


def format_authority(host: str, port: int) -> str:
    """Render ``host:port``, bracketing IPv6 literals"""
    try:
        if isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address):
            return f"[{host}]:{port}"
    except ValueError:
        pass
    return f"{host}:{port}"


def split_authority(value: str) -> tuple[str, Optional[int]]:
    """
    Split ``host[:port]`` (or ``[v6][:port]``) into host and optional port.

    Raises:
        ConfigError: If the value is malformed
    """
    value = value.strip()
    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep:
            raise ConfigError(f"Unterminated IPv6 literal: {value!r}")
        port_str = rest[1:] if rest.startswith(":") else ""
        if rest and not rest.startswith(":"):
            raise ConfigError(f"Invalid address: {value!r}")
    elif value.count(":") == 1:
        host, port_str = value.split(":")
    else:
        host, port_str = value, ""

    if not host:
        raise ConfigError(f"Missing host in {value!r}")

    if not port_str:
        return host, None

    try:
        port = int(port_str)
    except ValueError as e:
        raise ConfigError(f"Invalid port in {value!r}") from e
    _validate_port(port, "address")
    return host, port


def parse_authority(value: str, default_port: Optional[int] = None) -> tuple[str, int]:
    """
    Parse ``host:port``, falling back to ``default_port`` when none is given.

    Raises:
        ConfigError: If the value is malformed or lacks a required port
    """
    host, port = split_authority(value)
    if port is None:
        if default_port is None:
            raise ConfigError(f"Missing port in {value!r}")
        return host, default_port
    return host, port


@dataclass(frozen=True)
class TargetAddress:
    """Destination of the tunnel, as seen by the proxy"""
    host: str
    port: int

    def validate(self) -> None:
        """Validate address"""
        if not self.host:
            raise ConfigError("Target host must not be empty")
        _validate_port(self.port, "target")

    @classmethod
    def parse(cls, value: str) -> "TargetAddress":
        """Create from ``host:port``"""
        host, port = parse_authority(value)
        return cls(host=host, port=port)

    def __str__(self) -> str:
        return format_authority(self.host, self.port)


@dataclass(frozen=True)
class ProxyEndpoint:
    """HTTP proxy to tunnel through"""
    host: str
    port: int
    credential: Optional[str] = field(default=None, repr=False)  # "user:pass"

    def validate(self) -> None:
        """Validate configuration"""
        if not self.host:
            raise ConfigError("Proxy host must not be empty")
        _validate_port(self.port, "proxy")

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        return format_authority(self.host, self.port)


class FailureReason(Enum):
    """Why a tunnel attempt failed"""
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    NAME_RESOLUTION_FAILURE = "name_resolution_failure"
    TRANSPORT_ERROR = "transport_error"
    PREMATURE_CLOSE = "premature_close"
    PROXY_AUTH_REQUIRED = "proxy_auth_required"
    PROXY_FORBIDDEN = "proxy_forbidden"
    TARGET_NOT_FOUND = "target_not_found"
    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    GENERIC_PROXY_FAILURE = "generic_proxy_failure"

    @property
    def hint(self) -> str:
        return _HINTS[self]


_HINTS = {
    FailureReason.TIMEOUT: "Connection to proxy timed out. Check network connectivity or proxy server status.",
    FailureReason.CONNECTION_REFUSED: "Could not connect to proxy server. Check if the proxy is running and accessible.",
    FailureReason.NAME_RESOLUTION_FAILURE: "Proxy hostname could not be resolved. Check the proxy hostname.",
    FailureReason.TRANSPORT_ERROR: "Socket error while talking to the proxy.",
    FailureReason.PREMATURE_CLOSE: "Proxy closed the connection before completing the CONNECT response.",
    FailureReason.PROXY_AUTH_REQUIRED: "Proxy authentication required. Add proxy credentials.",
    FailureReason.PROXY_FORBIDDEN: "Proxy access forbidden. Check proxy permissions.",
    FailureReason.TARGET_NOT_FOUND: "Target host not found by proxy.",
    FailureReason.UPSTREAM_UNREACHABLE: "Proxy could not connect to target host.",
    FailureReason.GENERIC_PROXY_FAILURE: "Proxy rejected the CONNECT request.",
}


@dataclass
class Established:
    """Handshake succeeded; the caller now owns ``stream``"""
    stream: "TunnelSocket"
    trailing_bytes: bytes = b""
    status_line: str = ""

    ok = True


@dataclass(frozen=True)
class Failed:
    """Handshake failed; the socket has already been closed"""
    reason: FailureReason
    detail: Optional[str] = None
    status_line: Optional[str] = None

    ok = False

    @property
    def hint(self) -> str:
        return self.reason.hint

    def raise_for_failure(self) -> None:
        raise TunnelError(self)

    def __str__(self) -> str:
        text = self.reason.value
        extra = self.status_line or self.detail
        if extra:
            text += f": {extra}"
        return text


TunnelOutcome = Union[Established, Failed]
