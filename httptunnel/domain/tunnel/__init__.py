"""
Tunnel domain module
"""
from .models import (
    ProxyEndpoint,
    TargetAddress,
    FailureReason,
    Established,
    Failed,
    TunnelOutcome,
)
from .request import build_connect_request
from .parser import ResponseParser, ParsedResponse, ParserState
from .deadline import Deadline
from .classifier import classify_socket_error, classify_status, premature_close
from .stream import TunnelSocket
from .service import TunnelAttempt, TunnelService, establish_tunnel, probe_reachability

__all__ = [
    "ProxyEndpoint",
    "TargetAddress",
    "FailureReason",
    "Established",
    "Failed",
    "TunnelOutcome",
    "build_connect_request",
    "ResponseParser",
    "ParsedResponse",
    "ParserState",
    "Deadline",
    "classify_socket_error",
    "classify_status",
    "premature_close",
    "TunnelSocket",
    "TunnelAttempt",
    "TunnelService",
    "establish_tunnel",
    "probe_reachability",
]
