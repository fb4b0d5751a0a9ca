"""
Unified exception definitions
"""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..domain.tunnel.models import Failed


class HTTPTunnelError(Exception):
    """Base exception class"""
    pass


class ConfigError(HTTPTunnelError):
    """Configuration error"""
    pass


class ConnectionError(HTTPTunnelError):
    """SSH connection error"""
    pass


class TunnelError(HTTPTunnelError):
    """
    A CONNECT handshake ended in failure.

    Only raised by callers that opt into exceptions; the handshake itself
    reports failures as ``Failed`` outcomes.
    """

    def __init__(self, outcome: "Failed"):
        self.outcome = outcome
        super().__init__(str(outcome))

    @property
    def reason(self):
        return self.outcome.reason
