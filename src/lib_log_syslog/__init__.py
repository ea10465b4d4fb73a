"""Forward structured log records to a remote syslog collector.

Setup mirrors the collaboration between the proxy and the handler::

    proxy = SyslogProxy()
    handler = create_syslog_handler(proxy, JsonLineRenderer())
    proxy.connect("udp://1.2.3.4:514")
    handler.handle(LogEvent.now(LogLevel.INFO, "very important message"))

Attach :class:`LoggingBridgeHandler` to a stdlib logger to route ordinary
``logging`` calls through the same handler.
"""

from __future__ import annotations

from .adapters import (
    JsonLineRenderer,
    LoggingBridgeHandler,
    SyslogHandler,
    SyslogHandlerOptions,
    SyslogProxy,
    SyslogProxyOptions,
    TextLineRenderer,
    chain_transforms,
    create_syslog_handler,
    rfc3164_transform,
    trim_timestamp,
    trim_timestamp_transform,
)
from .application.ports import ByteSink, LineTransform, RendererPort
from .domain import (
    LogEvent,
    LogLevel,
    SyslogConnectionError,
    SyslogError,
    SyslogHandleError,
    SyslogProcessError,
    SyslogURLParseError,
    SyslogWriteError,
)

__all__ = [
    "ByteSink",
    "JsonLineRenderer",
    "LineTransform",
    "LogEvent",
    "LogLevel",
    "LoggingBridgeHandler",
    "RendererPort",
    "SyslogConnectionError",
    "SyslogError",
    "SyslogHandleError",
    "SyslogHandler",
    "SyslogHandlerOptions",
    "SyslogProcessError",
    "SyslogProxy",
    "SyslogProxyOptions",
    "SyslogURLParseError",
    "SyslogWriteError",
    "TextLineRenderer",
    "chain_transforms",
    "create_syslog_handler",
    "rfc3164_transform",
    "trim_timestamp",
    "trim_timestamp_transform",
]
