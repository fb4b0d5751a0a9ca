"""
Project constants definitions
"""

# ============================================================
# HTTP CONNECT Handshake
# ============================================================

HEADER_TERMINATOR = b"\r\n\r\n"
LINE_BREAK = b"\r\n"
USER_AGENT = "SSH-Client"
STATUS_ENCODING = "iso-8859-1"

# ============================================================
# Default Values
# ============================================================

DEFAULT_PROXY_PORT = 80
DEFAULT_TUNNEL_TIMEOUT = 30.0
DEFAULT_SSH_PORT = 22
DEFAULT_RECV_SIZE = 4096
DEFAULT_MAX_WORKERS = 8
DEFAULT_TELEMETRY_CAPACITY = 1000

# ============================================================
# Environment
# ============================================================

ENV_PROXY_HOST = "PROXY_HOST"
ENV_PROXY_PORT = "PROXY_PORT"
ENV_PROXY_AUTH = "PROXY_AUTH"
ENV_PROXY_TIMEOUT = "PROXY_TIMEOUT"
