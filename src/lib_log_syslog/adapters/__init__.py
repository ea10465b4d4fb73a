"""Adapters implementing transport, rendering, and logging integration."""

from __future__ import annotations

from .framing import chain_transforms, rfc3164_transform
from .logging_bridge import LoggingBridgeHandler
from .renderers import JsonLineRenderer, TextLineRenderer
from .syslog_handler import SyslogHandler, SyslogHandlerOptions, create_syslog_handler
from .syslog_proxy import SyslogProxy, SyslogProxyOptions, parse_destination
from .timestamps import trim_timestamp, trim_timestamp_transform

__all__ = [
    "JsonLineRenderer",
    "LoggingBridgeHandler",
    "SyslogHandler",
    "SyslogHandlerOptions",
    "SyslogProxy",
    "SyslogProxyOptions",
    "TextLineRenderer",
    "chain_transforms",
    "create_syslog_handler",
    "parse_destination",
    "rfc3164_transform",
    "trim_timestamp",
    "trim_timestamp_transform",
]
