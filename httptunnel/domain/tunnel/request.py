"""
HTTP CONNECT request serialization
"""
import base64
from typing import Optional

from ...core.constants import USER_AGENT
from .models import TargetAddress, format_authority


def build_connect_request(
    target: TargetAddress,
    credential: Optional[str] = None,
    user_agent: str = USER_AGENT,
) -> bytes:
    """
    Build the CONNECT request sent to the proxy.

    Args:
        target: Tunnel destination
        credential: Proxy credential, already in ``user:pass`` form
        user_agent: Value of the User-Agent header

    Returns:
        Request bytes, terminated by an empty line
    """
    authority = format_authority(target.host, target.port)
    lines = [
        f"CONNECT {authority} HTTP/1.1",
        f"Host: {authority}",
        "Connection: keep-alive",
        f"User-Agent: {user_agent}",
    ]

    if credential:
        token = base64.b64encode(credential.encode("utf-8")).decode("ascii")
        lines.append(f"Proxy-Authorization: Basic {token}")

    lines.extend(["", ""])
    return "\r\n".join(lines).encode("utf-8")
