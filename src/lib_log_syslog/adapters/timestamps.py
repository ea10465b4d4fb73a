"""Strip the leading timestamp renderers put in front of each line.

Syslog collectors stamp messages on arrival, so forwarding the renderer's own
timestamp only duplicates it. :func:`trim_timestamp` recognises the three
shapes emitted by the bundled renderers:

* ``time=2025-09-30T12:00:00+00:00 level=INFO ...`` (key=value text)
* ``{"time":"2025-09-30T12:00:00+00:00","level":"INFO",...}`` (JSON lines)
* ``2025-09-30T12:00:00Z INFO ...`` (bare leading token)
"""

from __future__ import annotations

import re
from datetime import datetime

_ISO = rb"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?"

_TEXT_RE = re.compile(rb'^time=(?P<q>"?)(?P<ts>' + _ISO + rb")(?P=q)[ \t]+")
_JSON_RE = re.compile(rb'^\{[ \t]*"time"[ \t]*:[ \t]*"(?P<ts>' + _ISO + rb')"[ \t]*(?:,[ \t]*)?')
_BARE_RE = re.compile(rb"^(?P<ts>" + _ISO + rb")[ \t]+")


def _check(token: bytes) -> None:
    text = token.decode("ascii")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    datetime.fromisoformat(text.replace(" ", "T", 1))


def trim_timestamp(line: bytes) -> bytes:
    """Return ``line`` without its leading timestamp.

    Raises
    ------
    ValueError
        No leading timestamp was found or it is not a valid date.

    Examples
    --------
    >>> trim_timestamp(b'time=2025-09-30T12:00:00+00:00 level=INFO msg=hi')
    b'level=INFO msg=hi'
    >>> trim_timestamp(b'{"time":"2025-09-30T12:00:00Z","level":"INFO"}')
    b'{"level":"INFO"}'
    >>> trim_timestamp(b'2025-09-30 12:00:00 started')
    b'started'
    """
    match = _JSON_RE.match(line)
    if match:
        _check(match.group("ts"))
        rest = line[match.end() :]
        return b"{" + rest
    for pattern in (_TEXT_RE, _BARE_RE):
        match = pattern.match(line)
        if match:
            _check(match.group("ts"))
            return line[match.end() :]
    raise ValueError("unable to trim timestamp: no leading timestamp found")


def trim_timestamp_transform(line: bytes) -> bytes:
    """Line transform that strips a timestamp when present.

    Unlike :func:`trim_timestamp` it never raises; a line without a
    recognisable timestamp is forwarded unchanged.

    >>> trim_timestamp_transform(b"no timestamp here")
    b'no timestamp here'
    """
    try:
        return trim_timestamp(line)
    except ValueError:
        return line


__all__ = ["trim_timestamp", "trim_timestamp_transform"]
