"""Domain entities and value objects used by the syslog forwarder."""

from __future__ import annotations

from .errors import (
    SyslogConnectionError,
    SyslogError,
    SyslogHandleError,
    SyslogProcessError,
    SyslogURLParseError,
    SyslogWriteError,
)
from .events import LogEvent
from .levels import PROBE_ORDER, LogLevel, probe_min_level

__all__ = [
    "LogEvent",
    "LogLevel",
    "PROBE_ORDER",
    "SyslogConnectionError",
    "SyslogError",
    "SyslogHandleError",
    "SyslogProcessError",
    "SyslogURLParseError",
    "SyslogWriteError",
    "probe_min_level",
]
