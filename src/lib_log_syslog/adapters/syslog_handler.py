"""Forwarding handler that relays any renderer's output to a syslog proxy.

Purpose
-------
Wrap an arbitrary :class:`RendererPort` so each accepted event is rendered
straight into the proxy buffer and drained to the collector while the proxy
lock is held.

Contents
--------
* :class:`SyslogHandlerOptions` - construction options.
* :class:`SyslogHandler` - immutable handler value.
* :func:`create_syslog_handler` - factory computing the level gate.

System Role
-----------
The setup order mirrors a typical deployment:

>>> from lib_log_syslog.adapters.renderers import TextLineRenderer
>>> from lib_log_syslog.adapters.syslog_proxy import SyslogProxy
>>> from lib_log_syslog.domain.levels import LogLevel
>>> proxy = SyslogProxy()
>>> handler = create_syslog_handler(proxy, TextLineRenderer(level=LogLevel.INFO))
>>> handler.enabled(LogLevel.DEBUG), handler.enabled(LogLevel.ERROR)
(False, True)

After ``proxy.connect("udp://1.2.3.4:514")`` every ``handler.handle(event)``
lands on the collector as one line per rendered record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from lib_log_syslog.adapters.syslog_proxy import SyslogProxy
from lib_log_syslog.adapters.timestamps import trim_timestamp_transform
from lib_log_syslog.application.ports.renderer import LineTransform, RendererPort
from lib_log_syslog.domain.errors import SyslogConnectionError, SyslogHandleError
from lib_log_syslog.domain.events import LogEvent
from lib_log_syslog.domain.levels import LogLevel, probe_min_level


@dataclass(slots=True)
class SyslogHandlerOptions:
    """Options accepted by :func:`create_syslog_handler`.

    ``line_transform`` defaults to :func:`trim_timestamp_transform`.
    """

    line_transform: LineTransform | None = None


@dataclass(slots=True, frozen=True, eq=False)
class SyslogHandler:
    """Relay events rendered by ``downstream`` through ``proxy``.

    Instances are immutable; :meth:`with_attributes` and :meth:`with_group`
    return new handlers sharing the same proxy. ``level`` is captured from
    the downstream renderer at construction and never re-derived.
    """

    proxy: SyslogProxy
    downstream: RendererPort
    level: LogLevel
    line_transform: LineTransform

    def enabled(self, level: LogLevel) -> bool:
        return level >= self.level

    def with_attributes(self, attrs: Mapping[str, Any]) -> "SyslogHandler":
        return replace(self, downstream=self.downstream.with_attributes(attrs))

    def with_group(self, name: str) -> "SyslogHandler":
        if not name:
            return self
        return replace(self, downstream=self.downstream.with_group(name))

    def handle(self, event: LogEvent) -> int:
        """Render ``event`` into the proxy buffer and drain it to the collector.

        Returns the number of lines written.

        Raises
        ------
        SyslogConnectionError
            The proxy is disconnected; the renderer is not invoked.
        SyslogHandleError
            The renderer failed; nothing of the record is forwarded.
        """
        if not self.proxy.is_connected():
            raise SyslogConnectionError("not connected")

        # The renderer writes into the shared buffer, so it must run under the lock too.
        with self.proxy.lock:
            mark = self.proxy.buffered_size()
            try:
                self.downstream.render(event, self.proxy.writer())
            except Exception as exc:
                self.proxy.discard_from(mark)
                raise SyslogHandleError(f"renderer failed: {exc}") from exc
            return self.proxy.process_lines(self.line_transform)


def create_syslog_handler(
    proxy: SyslogProxy,
    downstream: RendererPort,
    options: SyslogHandlerOptions | None = None,
) -> SyslogHandler:
    """Build a :class:`SyslogHandler`, probing ``downstream`` for its lowest enabled level."""

    opts = options or SyslogHandlerOptions()
    return SyslogHandler(
        proxy=proxy,
        downstream=downstream,
        level=probe_min_level(downstream.is_enabled),
        line_transform=opts.line_transform or trim_timestamp_transform,
    )


__all__ = ["SyslogHandler", "SyslogHandlerOptions", "create_syslog_handler"]
