"""
Typed tunnel settings built from merged configuration
"""
from dataclasses import dataclass
from typing import Dict, Any

from ...core.constants import DEFAULT_PROXY_PORT, DEFAULT_TUNNEL_TIMEOUT
from ...core.exceptions import ConfigError
from ...domain.tunnel import ProxyEndpoint
from ...domain.tunnel.models import parse_authority


@dataclass(frozen=True)
class TunnelSettings:
    """Proxy endpoint and deadline for one CLI invocation"""
    proxy: ProxyEndpoint
    timeout: float = DEFAULT_TUNNEL_TIMEOUT

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "TunnelSettings":
        """
        Create from a merged configuration dictionary.

        The ``[proxy]`` table accepts ``host``, ``port``, ``auth`` and
        ``timeout``; ``host`` may also carry the port as ``host:port``.

        Raises:
            ConfigError: If the proxy host is missing or a value is invalid
        """
        section = cfg.get("proxy", {})
        raw_host = section.get("host")
        if not raw_host:
            raise ConfigError("Proxy host is not configured (use --proxy or PROXY_HOST)")
        if not isinstance(raw_host, str):
            raise ConfigError(f"Proxy host must be a string, got {raw_host!r}")

        host, port = parse_authority(raw_host, default_port=DEFAULT_PROXY_PORT)
        if "port" in section:
            try:
                port = int(section["port"])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid proxy port: {section['port']!r}") from e

        try:
            timeout = float(section.get("timeout", DEFAULT_TUNNEL_TIMEOUT))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid proxy timeout: {section['timeout']!r}") from e
        if timeout <= 0:
            raise ConfigError(f"Proxy timeout must be positive, got {timeout:g}")

        proxy = ProxyEndpoint(host=host, port=port, credential=section.get("auth") or None)
        proxy.validate()
        return cls(proxy=proxy, timeout=timeout)
