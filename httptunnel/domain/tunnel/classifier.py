"""
Mapping of socket errors and proxy status codes to failure reasons
"""
import errno
import socket
from typing import Optional

from .models import Failed, FailureReason


_STATUS_REASONS = {
    407: FailureReason.PROXY_AUTH_REQUIRED,
    403: FailureReason.PROXY_FORBIDDEN,
    404: FailureReason.TARGET_NOT_FOUND,
    502: FailureReason.UPSTREAM_UNREACHABLE,
    504: FailureReason.UPSTREAM_UNREACHABLE,
}


def classify_socket_error(exc: BaseException) -> Failed:
    """Classify an error raised while connecting to or talking with the proxy"""
    detail = str(exc) or exc.__class__.__name__

    # gaierror and timeout are OSError subclasses, check them first
    if isinstance(exc, socket.gaierror):
        return Failed(FailureReason.NAME_RESOLUTION_FAILURE, detail=detail)
    if isinstance(exc, ConnectionRefusedError):
        return Failed(FailureReason.CONNECTION_REFUSED, detail=detail)
    if isinstance(exc, TimeoutError):
        return Failed(FailureReason.TIMEOUT, detail=detail)

    code = getattr(exc, "errno", None)
    if code == errno.ECONNREFUSED:
        return Failed(FailureReason.CONNECTION_REFUSED, detail=detail)
    if code == errno.ETIMEDOUT:
        return Failed(FailureReason.TIMEOUT, detail=detail)

    return Failed(FailureReason.TRANSPORT_ERROR, detail=detail)


def classify_status(status_code: Optional[int], status_line: str) -> Failed:
    """Classify a non-200 CONNECT response"""
    reason = _STATUS_REASONS.get(status_code, FailureReason.GENERIC_PROXY_FAILURE)
    return Failed(reason, status_line=status_line)


def premature_close(buffered: int = 0) -> Failed:
    """Proxy hung up before the header block was complete"""
    return Failed(
        FailureReason.PREMATURE_CLOSE,
        detail=f"connection closed after {buffered} bytes of response",
    )


def deadline_expired(seconds: float) -> Failed:
    return Failed(FailureReason.TIMEOUT, detail=f"no CONNECT response within {seconds:g}s")
