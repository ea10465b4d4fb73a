"""Renderer port describing the downstream formatting contract.

Purpose
-------
Define the abstraction the forwarding handler wraps: something that turns a
:class:`LogEvent` into bytes written to a sink, reports which levels it
accepts, and derives variants with extra attributes or a nested group.

Contents
--------
* :class:`ByteSink` - write-only byte destination handed to renderers.
* :class:`RendererPort` - runtime-checkable renderer protocol.
* :data:`LineTransform` - callable rewriting one line before transmission.

System Role
-----------
Keeps the syslog handler independent of any concrete formatter so test
doubles and alternative renderers can be substituted freely.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from lib_log_syslog.domain.events import LogEvent
from lib_log_syslog.domain.levels import LogLevel

LineTransform = Callable[[bytes], bytes]
#: Rewrites one line; raising aborts the drain with that exception.


@runtime_checkable
class ByteSink(Protocol):
    """Accept rendered bytes."""

    def write(self, data: bytes) -> int: ...


@runtime_checkable
class RendererPort(Protocol):
    """Render log events to a byte sink."""

    def render(self, event: LogEvent, sink: ByteSink) -> None:
        """Write the rendered form of ``event`` into ``sink``."""

    def is_enabled(self, level: LogLevel) -> bool:
        """Return ``True`` when events at ``level`` would be rendered."""

    def with_attributes(self, attrs: Mapping[str, Any]) -> "RendererPort":
        """Return a renderer that adds ``attrs`` to every event."""

    def with_group(self, name: str) -> "RendererPort":
        """Return a renderer that nests subsequent attributes under ``name``."""


__all__ = ["ByteSink", "LineTransform", "RendererPort"]
