"""Line-oriented renderers implementing :class:`RendererPort`.

Purpose
-------
Turn :class:`LogEvent` objects into single-line byte records suitable for
syslog framing. Both renderers put the timestamp first so the default line
transform can strip it before transmission.

Contents
--------
* :class:`JsonLineRenderer` - one compact JSON object per event.
* :class:`TextLineRenderer` - ``key=value`` pairs with dotted group prefixes.

System Role
-----------
Default downstream renderers for :func:`create_syslog_handler`; any other
object satisfying :class:`RendererPort` can replace them.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from lib_log_syslog.application.ports.renderer import ByteSink, RendererPort
from lib_log_syslog.domain.events import LogEvent
from lib_log_syslog.domain.levels import LogLevel

_Attr = tuple[tuple[str, ...], str, Any]

_BARE_VALUE = re.compile(r"^[^\s\"=\\]+$")


def _insert(target: dict[str, Any], path: tuple[str, ...], key: str, value: Any) -> None:
    node = target
    for group in path:
        child = node.get(group)
        if not isinstance(child, dict):
            child = node[group] = {}
        node = child
    node[key] = value


@dataclass(slots=True, frozen=True)
class _LineRenderer(ABC):
    level: LogLevel = LogLevel.INFO
    attrs: tuple[_Attr, ...] = ()
    groups: tuple[str, ...] = ()

    def is_enabled(self, level: LogLevel) -> bool:
        return level >= self.level

    def with_attributes(self, attrs: Mapping[str, Any]) -> RendererPort:
        if not attrs:
            return self
        added = tuple((self.groups, key, value) for key, value in attrs.items())
        return replace(self, attrs=self.attrs + added)

    def with_group(self, name: str) -> RendererPort:
        if not name:
            return self
        return replace(self, groups=self.groups + (name,))

    def render(self, event: LogEvent, sink: ByteSink) -> None:
        sink.write(self._format(self._payload(event)).encode("utf-8") + b"\n")

    def _payload(self, event: LogEvent) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "time": event.timestamp.isoformat(),
            "level": event.level.name,
            "msg": event.message,
        }
        if event.logger_name:
            payload["logger"] = event.logger_name
        for path, key, value in self.attrs:
            _insert(payload, path, key, value)
        for key, value in event.extra.items():
            _insert(payload, self.groups, key, value)
        if event.exc_info:
            payload["exc_info"] = event.exc_info
        return payload

    @abstractmethod
    def _format(self, payload: dict[str, Any]) -> str:
        """Serialise ``payload`` to one line without terminator."""


class JsonLineRenderer(_LineRenderer):
    """Render each event as one compact JSON object.

    Examples
    --------
    >>> import io
    >>> from datetime import datetime, timezone
    >>> sink = io.BytesIO()
    >>> event = LogEvent(datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), LogLevel.INFO, "ready")
    >>> JsonLineRenderer().with_group("req").with_attributes({"id": 7}).render(event, sink)
    >>> sink.getvalue()
    b'{"time":"2025-09-30T12:00:00+00:00","level":"INFO","msg":"ready","req":{"id":7}}\\n'
    """

    __slots__ = ()

    def _format(self, payload: dict[str, Any]) -> str:
        return json.dumps(payload, default=str, ensure_ascii=False, separators=(",", ":"))


class TextLineRenderer(_LineRenderer):
    """Render each event as space separated ``key=value`` pairs.

    Nested groups flatten into dotted keys; values containing whitespace,
    quotes or ``=`` are JSON-quoted so a record never spans several lines.

    Examples
    --------
    >>> import io
    >>> from datetime import datetime, timezone
    >>> sink = io.BytesIO()
    >>> event = LogEvent(datetime(2025, 9, 30, 12, 0, tzinfo=timezone.utc), LogLevel.WARNING, "disk low", extra={"free": "2%"})
    >>> TextLineRenderer().with_group("fs").render(event, sink)
    >>> sink.getvalue()
    b'time=2025-09-30T12:00:00+00:00 level=WARNING msg="disk low" fs.free=2%\\n'
    """

    __slots__ = ()

    def _format(self, payload: dict[str, Any]) -> str:
        return " ".join(f"{key}={self._quote(value)}" for key, value in self._flatten(payload, ""))

    @classmethod
    def _flatten(cls, payload: Mapping[str, Any], prefix: str) -> list[tuple[str, Any]]:
        pairs: list[tuple[str, Any]] = []
        for key, value in payload.items():
            name = f"{prefix}{key}"
            if isinstance(value, Mapping):
                pairs.extend(cls._flatten(value, f"{name}."))
            else:
                pairs.append((name, value))
        return pairs

    @staticmethod
    def _quote(value: Any) -> str:
        text = value if isinstance(value, str) else str(value)
        if text and _BARE_VALUE.match(text):
            return text
        return json.dumps(text, ensure_ascii=False)


__all__ = ["JsonLineRenderer", "TextLineRenderer"]
