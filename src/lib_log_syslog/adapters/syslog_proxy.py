"""Connection-owning proxy between rendered log output and a syslog collector.

Purpose
-------
Own the socket to the remote collector, the intermediate byte buffer that
renderers write into, and the drain that turns buffered output into
newline-framed lines on the wire.

Contents
--------
* :class:`SyslogProxyOptions` - construction-time options.
* :class:`Destination` / :func:`parse_destination` - URL validation.
* :func:`dial` - default socket factory for ``tcp``, ``udp`` and ``unix``.
* :class:`SyslogProxy` - connect/disconnect, writer, lock, and drain.

System Role
-----------
Shared by every :class:`~lib_log_syslog.adapters.syslog_handler.SyslogHandler`
built on top of it. The proxy lock serialises render+drain so concurrent
handlers never interleave partial lines.

Usage
-----
>>> proxy = SyslogProxy()
>>> proxy.is_connected()
False
>>> sink = proxy.writer()
>>> sink.write(b"pending line")
12
>>> proxy.buffered()
b'pending line'
"""

from __future__ import annotations

import logging
import socket
import sys
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import suppress
from dataclasses import dataclass
from urllib.parse import urlsplit

from lib_log_syslog.adapters.framing import DEFAULT_PRIORITY, MAX_PRIORITY, rfc3164_transform
from lib_log_syslog.application.ports.renderer import LineTransform
from lib_log_syslog.domain.errors import (
    SyslogConnectionError,
    SyslogProcessError,
    SyslogURLParseError,
    SyslogWriteError,
)

LOGGER = logging.getLogger(__name__)

ALLOWED_SCHEMES: tuple[str, ...] = ("tcp", "udp", "unix")
DEFAULT_DIAL_TIMEOUT = 5.0
INITIAL_IO_BUF_SIZE = 64 * 1024
INITIAL_LINE_PROCESS_BUF_SIZE = 64 * 1024

Dialer = Callable[["Destination", float], socket.socket]


@dataclass(slots=True)
class SyslogProxyOptions:
    """Options accepted by :class:`SyslogProxy`.

    Attributes
    ----------
    use_local_tz:
        Render header timestamps in local time instead of UTC.
    priority:
        Syslog priority (facility | severity). ``None`` or out-of-range values
        fall back to ``LOG_INFO | LOG_USER``.
    tag:
        Program tag used in message headers; defaults to ``sys.argv[0]``.
    io_buf_size:
        Initial capacity hint for the intermediate buffer.
    line_process_buf_size:
        Longest line (in bytes) the drain accepts before failing.
    """

    use_local_tz: bool = False
    priority: int | None = None
    tag: str = ""
    io_buf_size: int = 0
    line_process_buf_size: int = 0


@dataclass(slots=True, frozen=True)
class Destination:
    """Validated transport scheme and address."""

    scheme: str
    address: str
    host: str = ""
    port: int = 0

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.address}"


def parse_destination(url: str) -> Destination:
    """Validate ``url`` and return its normalised :class:`Destination`.

    Examples
    --------
    >>> parse_destination("udp://127.0.0.1:514").url
    'udp://127.0.0.1:514'
    >>> parse_destination("unix:///dev/log").address
    '/dev/log'
    >>> parse_destination("http://example.com")
    Traceback (most recent call last):
    ...
    lib_log_syslog.domain.errors.SyslogURLParseError: URL `http://example.com` is wrong: unsupported proto 'http', allowed only ('tcp', 'udp', 'unix')
    """
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise SyslogURLParseError(f"URL `{url}` is wrong: {exc}") from exc
    if parts.scheme not in ALLOWED_SCHEMES:
        raise SyslogURLParseError(f"URL `{url}` is wrong: unsupported proto '{parts.scheme}', allowed only {ALLOWED_SCHEMES}")

    if parts.scheme == "unix":
        if not parts.path:
            raise SyslogURLParseError(f"URL `{url}` is wrong: socket path is empty")
        return Destination(scheme="unix", address=parts.path)

    try:
        port = parts.port
    except ValueError as exc:
        raise SyslogURLParseError(f"URL `{url}` is wrong: {exc}") from exc
    if not parts.hostname or port is None:
        raise SyslogURLParseError(f"URL `{url}` is wrong: expected {parts.scheme}://HOST:PORT")
    return Destination(scheme=parts.scheme, address=parts.netloc, host=parts.hostname, port=port)


def dial(destination: Destination, timeout: float) -> socket.socket:
    """Open a connected socket for ``destination`` within ``timeout`` seconds."""

    if destination.scheme == "tcp":
        return socket.create_connection((destination.host, destination.port), timeout=timeout)

    if destination.scheme == "udp":
        family, kind, proto, _, sockaddr = socket.getaddrinfo(destination.host, destination.port, type=socket.SOCK_DGRAM)[0]
        sock = socket.socket(family, kind, proto)
        target: object = sockaddr
    else:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        target = destination.address
    try:
        sock.settimeout(timeout)
        sock.connect(target)
    except OSError:
        sock.close()
        raise
    return sock


class _BufferWriter:
    """Write-only view over the proxy buffer."""

    __slots__ = ("_buffer",)

    def __init__(self, buffer: bytearray) -> None:
        self._buffer = buffer

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    def writable(self) -> bool:
        return True

    def flush(self) -> None:
        return None


class SyslogProxy:
    """Own the collector connection and drain buffered lines into it."""

    def __init__(self, options: SyslogProxyOptions | None = None, *, dialer: Dialer | None = None) -> None:
        """Normalise ``options`` and prepare an unconnected proxy.

        Parameters
        ----------
        options:
            Construction options; ``None`` uses every default.
        dialer:
            Socket factory used by :meth:`connect`; defaults to :func:`dial`.
        """
        opts = options or SyslogProxyOptions()
        priority = opts.priority
        if priority is None or priority < 0 or priority > MAX_PRIORITY:
            priority = DEFAULT_PRIORITY

        self._io_buf_size = opts.io_buf_size or INITIAL_IO_BUF_SIZE
        self._line_process_buf_size = opts.line_process_buf_size or INITIAL_LINE_PROCESS_BUF_SIZE
        self._priority = priority
        self._tag = opts.tag or sys.argv[0] or "python"
        self._use_local_tz = opts.use_local_tz
        self._dialer = dialer or dial
        self._buffer = bytearray()
        self._writer = _BufferWriter(self._buffer)
        self._url = ""
        self._connection: socket.socket | None = None
        self._timeout = DEFAULT_DIAL_TIMEOUT
        self._lock = threading.Lock()

    @property
    def lock(self) -> threading.Lock:
        """Mutex guarding the buffer and the render+drain sequence."""
        return self._lock

    def acquire(self) -> None:
        self._lock.acquire()

    def release(self) -> None:
        self._lock.release()

    def __enter__(self) -> "SyslogProxy":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._lock.release()

    @property
    def url(self) -> str:
        """Last validated destination URL, or ``""`` before the first connect."""
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def tag(self) -> str:
        return self._tag

    @property
    def use_local_tz(self) -> bool:
        return self._use_local_tz

    @property
    def io_buf_size(self) -> int:
        return self._io_buf_size

    @property
    def line_process_buf_size(self) -> int:
        return self._line_process_buf_size

    def header_transform(self) -> LineTransform:
        """Return an RFC 3164 header transform built from this proxy's options."""
        return rfc3164_transform(tag=self._tag, priority=self._priority, use_local_tz=self._use_local_tz)

    def writer(self) -> _BufferWriter:
        """Return the sink renderers write into; drained by :meth:`process_lines`."""
        return self._writer

    def buffered(self) -> bytes:
        """Return a copy of the bytes not yet drained."""
        return bytes(self._buffer)

    def buffered_size(self) -> int:
        return len(self._buffer)

    def discard_from(self, offset: int) -> None:
        """Drop buffered bytes past ``offset``; the caller must hold :attr:`lock`."""
        del self._buffer[offset:]

    def connect(self, url: str = "", timeout: float | None = 0) -> None:
        """Connect (or reconnect) to the collector at ``url``.

        ``url`` takes one of the forms ``tcp://1.2.3.4:514``,
        ``udp://1.2.3.4:514`` or ``unix:///var/run/syslog``; an empty string
        reuses the previous destination. A zero ``timeout`` selects
        :data:`DEFAULT_DIAL_TIMEOUT`.

        The new socket is dialed before the lock is taken; the previous
        connection is only closed once the new one is ready, so a failed dial
        leaves the proxy exactly as it was.
        """
        destination = parse_destination(url or self._url)
        self._url = destination.url
        effective = timeout or DEFAULT_DIAL_TIMEOUT

        try:
            connection = self._dialer(destination, effective)
        except OSError as exc:
            raise SyslogConnectionError(f"unable to connect to {destination.url}: {exc}") from exc

        with self._lock:
            self._close_connection()
            self._connection = connection
            self._timeout = effective
        LOGGER.debug("connected to syslog collector %s", destination.url)

    def is_connected(self) -> bool:
        return self._connection is not None

    def disconnect(self) -> None:
        """Close the active connection; a no-op when already disconnected."""
        with self._lock:
            closed = self._close_connection()
        if closed:
            LOGGER.debug("disconnected from syslog collector %s", self._url)

    def _close_connection(self) -> bool:
        connection, self._connection = self._connection, None
        if connection is None:
            return False
        with suppress(OSError):
            connection.close()
        return True

    def process_lines(self, line_transform: LineTransform) -> int:
        """Drain complete buffered lines to the collector.

        The caller must hold :attr:`lock`. Each non-empty line is passed
        through ``line_transform`` and sent as one frame ending in ``\\n``;
        a trailing line without terminator stays buffered for the next drain.
        All writes of one drain share a single deadline of :attr:`timeout`
        seconds from the start of the drain.

        Returns
        -------
        int
            Number of lines written.

        Raises
        ------
        SyslogConnectionError
            The proxy is disconnected; the buffer is left untouched.
        SyslogWriteError
            A socket write failed or the deadline passed; ``lines_written``
            tells how many lines of this drain reached the socket first.
        SyslogProcessError
            A line exceeds ``line_process_buf_size``; ``lines_written`` as above.
        Exception
            Whatever ``line_transform`` raised, unchanged.
        """
        connection = self._connection
        if connection is None:
            raise SyslogConnectionError("not connected")

        deadline = time.monotonic() + self._timeout
        limit = self._line_process_buf_size
        written = 0
        for line in self._iter_lines():
            if len(line) > limit:
                raise SyslogProcessError(f"line of {len(line)} bytes exceeds the {limit} byte limit", lines_written=written)
            if not line:
                continue
            frame = line_transform(line)
            if not frame:
                continue
            if not frame.endswith(b"\n"):
                frame += b"\n"
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise SyslogWriteError(f"write deadline of {self._timeout}s to {self._url} exceeded", lines_written=written)
            try:
                connection.settimeout(remaining)
                connection.sendall(frame)
            except OSError as exc:
                raise SyslogWriteError(f"unable to write to {self._url}: {exc}", lines_written=written) from exc
            written += 1

        if len(self._buffer) > limit:
            size = len(self._buffer)
            del self._buffer[:]
            raise SyslogProcessError(f"unterminated line of {size} bytes exceeds the {limit} byte limit", lines_written=written)
        return written

    def _iter_lines(self) -> Iterator[bytes]:
        """Consume every complete line from the buffer, yielding them in order."""
        end = self._buffer.rfind(b"\n")
        if end < 0:
            return
        chunk = bytes(self._buffer[: end + 1])
        del self._buffer[: end + 1]

        for line in chunk.split(b"\n")[:-1]:
            yield line[:-1] if line.endswith(b"\r") else line


__all__ = [
    "ALLOWED_SCHEMES",
    "DEFAULT_DIAL_TIMEOUT",
    "DEFAULT_PRIORITY",
    "Destination",
    "SyslogProxy",
    "SyslogProxyOptions",
    "dial",
    "parse_destination",
]
