"""Protocols consumed by the syslog forwarding adapters."""

from __future__ import annotations

from .renderer import ByteSink, LineTransform, RendererPort

__all__ = ["ByteSink", "LineTransform", "RendererPort"]
