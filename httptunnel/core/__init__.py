"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .telemetry import Telemetry, MetricSummary, get_telemetry

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "Telemetry",
    "MetricSummary",
    "get_telemetry",
    "HTTPTunnelError",
    "ConfigError",
    "ConnectionError",
    "TunnelError",
]
