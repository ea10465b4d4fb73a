from __future__ import annotations

import socket
import sys
import threading
import time
from pathlib import Path

import pytest

from lib_log_syslog.adapters.syslog_proxy import (
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_PRIORITY,
    SyslogProxy,
    SyslogProxyOptions,
    parse_destination,
)
from lib_log_syslog.domain.errors import (
    SyslogConnectionError,
    SyslogProcessError,
    SyslogURLParseError,
    SyslogWriteError,
)
from tests._fakes import FakeConnection, FakeDialer, SlowConnection


def _identity(line: bytes) -> bytes:
    return line


@pytest.mark.parametrize(
    "url, expected",
    [
        ("tcp://10.0.0.1:514", "tcp://10.0.0.1:514"),
        ("udp://collector.example:5514", "udp://collector.example:5514"),
        ("unix:///var/run/syslog", "unix:///var/run/syslog"),
        ("udp://10.0.0.1:514/ignored?x=1", "udp://10.0.0.1:514"),
    ],
)
def test_parse_destination_normalises(url: str, expected: str) -> None:
    assert parse_destination(url).url == expected


@pytest.mark.parametrize(
    "url, error_match",
    [
        ("http://x", "unsupported proto 'http'"),
        ("", "unsupported proto ''"),
        ("tcp://collector.example", "HOST:PORT"),
        ("udp://collector.example:notaport", "wrong"),
        ("unix://", "socket path is empty"),
    ],
)
def test_parse_destination_rejects_invalid_urls(url: str, error_match: str) -> None:
    with pytest.raises(SyslogURLParseError, match=error_match):
        parse_destination(url)


def test_url_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_destination("ftp://host:21")


def test_options_defaults_are_applied() -> None:
    proxy = SyslogProxy()

    assert proxy.priority == DEFAULT_PRIORITY
    assert proxy.tag == (sys.argv[0] or "python")
    assert proxy.io_buf_size > 0
    assert proxy.line_process_buf_size > 0
    assert proxy.use_local_tz is False


@pytest.mark.parametrize("priority", [-1, 192, 1000])
def test_out_of_range_priority_falls_back_to_default(priority: int) -> None:
    assert SyslogProxy(SyslogProxyOptions(priority=priority)).priority == DEFAULT_PRIORITY


def test_zero_priority_is_respected() -> None:
    assert SyslogProxy(SyslogProxyOptions(priority=0)).priority == 0


def test_connect_normalises_and_reuses_destination(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    proxy.connect("udp://10.0.0.1:514/path", timeout=2.5)
    assert proxy.url == "udp://10.0.0.1:514"
    assert proxy.is_connected()
    assert proxy.timeout == 2.5

    proxy.connect("")

    assert proxy.url == "udp://10.0.0.1:514"
    assert [call[0].url for call in fake_dialer.calls] == ["udp://10.0.0.1:514", "udp://10.0.0.1:514"]
    assert fake_dialer.connections[0].closed is True
    assert fake_dialer.connections[1].closed is False


def test_connect_zero_timeout_uses_default(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    proxy.connect("tcp://10.0.0.1:514", timeout=0)

    assert fake_dialer.calls[0][1] == DEFAULT_DIAL_TIMEOUT
    assert proxy.timeout == DEFAULT_DIAL_TIMEOUT


def test_connect_without_any_destination_fails(proxy: SyslogProxy) -> None:
    with pytest.raises(SyslogURLParseError):
        proxy.connect("")
    assert not proxy.is_connected()


def test_unsupported_scheme_keeps_previous_connection(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    with pytest.raises(SyslogURLParseError):
        connected_proxy.connect("http://x")

    assert connected_proxy.is_connected()
    assert connected_proxy.url == "tcp://collector.example:514"
    assert fake_dialer.connections[0].closed is False
    assert len(fake_dialer.calls) == 1


def test_dial_failure_keeps_previous_connection(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    fake_dialer.error = ConnectionRefusedError("refused")

    with pytest.raises(SyslogConnectionError, match="refused") as excinfo:
        connected_proxy.connect("tcp://other.example:514", timeout=1.0)

    assert isinstance(excinfo.value.__cause__, ConnectionRefusedError)
    assert connected_proxy.is_connected()
    assert fake_dialer.connections[0].closed is False
    assert connected_proxy.timeout == DEFAULT_DIAL_TIMEOUT


def test_dial_failure_while_disconnected_stays_disconnected(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    fake_dialer.error = OSError("unreachable")

    with pytest.raises(SyslogConnectionError):
        proxy.connect("udp://10.0.0.1:514")

    assert not proxy.is_connected()


def test_disconnect_is_idempotent(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.disconnect()
    connected_proxy.disconnect()

    assert not connected_proxy.is_connected()
    assert fake_dialer.connections[0].closed is True


def test_drain_while_disconnected_preserves_buffer(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    proxy.writer().write(b"a\nb\n")

    with proxy.lock, pytest.raises(SyslogConnectionError, match="not connected"):
        proxy.process_lines(_identity)
    assert proxy.buffered() == b"a\nb\n"

    proxy.connect("tcp://collector.example:514")
    with proxy.lock:
        assert proxy.process_lines(_identity) == 2
    assert fake_dialer.connections[0].frames == [b"a\n", b"b\n"]


def test_drain_writes_one_frame_per_line(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"a\nb\n")

    with connected_proxy.lock:
        written = connected_proxy.process_lines(_identity)

    assert written == 2
    assert fake_dialer.connections[0].frames == [b"a\n", b"b\n"]
    assert connected_proxy.buffered() == b""


def test_drain_holds_back_partial_line(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"a\nb")

    with connected_proxy.lock:
        connected_proxy.process_lines(_identity)

    assert fake_dialer.connections[0].frames == [b"a\n"]
    assert connected_proxy.buffered() == b"b"

    connected_proxy.writer().write(b"c\n")
    with connected_proxy.lock:
        connected_proxy.process_lines(_identity)
    assert fake_dialer.connections[0].frames == [b"a\n", b"bc\n"]


def test_drain_skips_empty_lines_and_strips_carriage_returns(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"\r\none\r\n\n\ntwo\n")

    with connected_proxy.lock:
        written = connected_proxy.process_lines(_identity)

    assert written == 2
    assert fake_dialer.connections[0].frames == [b"one\n", b"two\n"]


def test_drain_writes_share_one_shrinking_timeout(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"a\nb\nc\n")

    with connected_proxy.lock:
        connected_proxy.process_lines(_identity)

    timeouts = fake_dialer.connections[0].timeouts
    assert len(timeouts) == 3
    assert all(0 < value <= DEFAULT_DIAL_TIMEOUT for value in timeouts)
    assert timeouts == sorted(timeouts, reverse=True)


def test_slow_collector_fails_once_drain_deadline_passes(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    fake_dialer.next_connection = SlowConnection(0.3)
    proxy.connect("tcp://collector.example:514", 0.5)
    proxy.writer().write(b"1\n2\n3\n4\n5\n")

    started = time.monotonic()
    with proxy.lock, pytest.raises(SyslogWriteError) as excinfo:
        proxy.process_lines(_identity)
    elapsed = time.monotonic() - started

    assert excinfo.value.lines_written == 1
    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert elapsed < 0.9
    assert fake_dialer.connections[0].frames == [b"1\n"]


def test_drain_stops_when_deadline_already_spent(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    fake_dialer.next_connection = SlowConnection(0.3, honour_timeout=False)
    proxy.connect("tcp://collector.example:514", 0.5)
    proxy.writer().write(b"1\n2\n3\n4\n")

    with proxy.lock, pytest.raises(SyslogWriteError, match="deadline") as excinfo:
        proxy.process_lines(_identity)

    assert excinfo.value.lines_written == 2
    assert fake_dialer.connections[0].frames == [b"1\n", b"2\n"]
    assert proxy.buffered() == b""


def test_transform_output_is_terminated_once(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"a\nb\n")

    def _transform(line: bytes) -> bytes:
        return line.upper() + (b"\n" if line == b"a" else b"")

    with connected_proxy.lock:
        connected_proxy.process_lines(_transform)

    assert fake_dialer.connections[0].frames == [b"A\n", b"B\n"]


def test_transform_returning_empty_drops_line(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"keep\ndrop\n")

    with connected_proxy.lock:
        written = connected_proxy.process_lines(lambda line: b"" if line == b"drop" else line)

    assert written == 1
    assert fake_dialer.connections[0].frames == [b"keep\n"]


def test_transform_error_aborts_drain_verbatim(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"one\ntwo\nthree\n")
    failure = LookupError("bad line")
    seen: list[bytes] = []

    def _transform(line: bytes) -> bytes:
        seen.append(line)
        if line == b"two":
            raise failure
        return line

    with connected_proxy.lock, pytest.raises(LookupError) as excinfo:
        connected_proxy.process_lines(_transform)

    assert excinfo.value is failure
    assert seen == [b"one", b"two"]
    assert fake_dialer.connections[0].frames == [b"one\n"]
    assert connected_proxy.buffered() == b""


def test_write_error_reports_lines_already_written(proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    fake_dialer.next_connection = FakeConnection(fail_on_call=3)
    proxy.connect("tcp://collector.example:514")
    proxy.writer().write(b"1\n2\n3\n4\n")

    with proxy.lock, pytest.raises(SyslogWriteError) as excinfo:
        proxy.process_lines(_identity)

    assert excinfo.value.lines_written == 2
    assert isinstance(excinfo.value.__cause__, BrokenPipeError)
    assert fake_dialer.connections[0].frames == [b"1\n", b"2\n"]


def test_oversized_line_is_a_process_error(fake_dialer: FakeDialer) -> None:
    proxy = SyslogProxy(SyslogProxyOptions(line_process_buf_size=8), dialer=fake_dialer)
    proxy.connect("udp://10.0.0.1:514")
    proxy.writer().write(b"short\n" + b"x" * 9 + b"\nnever\n")

    with proxy.lock, pytest.raises(SyslogProcessError, match="exceeds") as excinfo:
        proxy.process_lines(_identity)

    assert excinfo.value.lines_written == 1
    assert fake_dialer.connections[0].frames == [b"short\n"]


def test_oversized_partial_line_is_discarded(fake_dialer: FakeDialer) -> None:
    proxy = SyslogProxy(SyslogProxyOptions(line_process_buf_size=4), dialer=fake_dialer)
    proxy.connect("udp://10.0.0.1:514")
    proxy.writer().write(b"ok\nunterminated")

    with proxy.lock, pytest.raises(SyslogProcessError, match="unterminated") as excinfo:
        proxy.process_lines(_identity)

    assert excinfo.value.lines_written == 1
    assert fake_dialer.connections[0].frames == [b"ok\n"]
    assert proxy.buffered() == b""


def test_reconnect_waits_for_lock_holder(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    finished = threading.Event()

    def _reconnect() -> None:
        connected_proxy.connect("")
        finished.set()

    with connected_proxy.lock:
        worker = threading.Thread(target=_reconnect)
        worker.start()
        time.sleep(0.05)
        assert not finished.is_set()
        assert fake_dialer.connections[0].closed is False

    worker.join(timeout=2)
    assert finished.is_set()
    assert fake_dialer.connections[0].closed is True


def test_proxy_is_its_own_lock_context(connected_proxy: SyslogProxy, fake_dialer: FakeDialer) -> None:
    connected_proxy.writer().write(b"ctx\n")

    with connected_proxy as locked:
        assert locked is connected_proxy
        assert connected_proxy.lock.locked()
        locked.process_lines(lambda line: line)
    assert not connected_proxy.lock.locked()

    connected_proxy.acquire()
    assert connected_proxy.lock.locked()
    connected_proxy.release()

    assert fake_dialer.connections[0].frames == [b"ctx\n"]


def test_header_transform_uses_proxy_options() -> None:
    proxy = SyslogProxy(SyslogProxyOptions(priority=134, tag="svc"))

    framed = proxy.header_transform()(b"payload")

    assert framed.startswith(b"<134>")
    assert b" svc[" in framed
    assert framed.endswith(b"]: payload")


def test_tcp_round_trip(tcp_listener: socket.socket) -> None:
    port = tcp_listener.getsockname()[1]
    proxy = SyslogProxy()
    proxy.connect(f"tcp://127.0.0.1:{port}", timeout=2.0)
    conn, _ = tcp_listener.accept()
    try:
        proxy.writer().write(b"first\nsecond\n")
        with proxy.lock:
            assert proxy.process_lines(_identity) == 2
        proxy.disconnect()

        received = b""
        conn.settimeout(2.0)
        while chunk := conn.recv(1024):
            received += chunk
    finally:
        conn.close()

    assert received == b"first\nsecond\n"


def test_udp_sends_one_datagram_per_line() -> None:
    server = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    server.bind(("127.0.0.1", 0))
    server.settimeout(2.0)
    try:
        port = server.getsockname()[1]
        proxy = SyslogProxy()
        proxy.connect(f"udp://127.0.0.1:{port}")
        proxy.writer().write(b"alpha\nbeta\n")
        with proxy.lock:
            proxy.process_lines(_identity)
        proxy.disconnect()

        datagrams = [server.recv(1024), server.recv(1024)]
    finally:
        server.close()

    assert datagrams == [b"alpha\n", b"beta\n"]


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="unix sockets unavailable")
def test_unix_stream_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "syslog.sock"
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(path))
    server.listen(1)
    server.settimeout(2.0)
    try:
        proxy = SyslogProxy()
        proxy.connect(f"unix://{path}")
        assert proxy.url == f"unix://{path}"
        conn, _ = server.accept()
        with conn:
            proxy.writer().write(b"via unix\n")
            with proxy.lock:
                proxy.process_lines(_identity)
            proxy.disconnect()
            conn.settimeout(2.0)
            assert conn.recv(1024) == b"via unix\n"
    finally:
        server.close()


def test_connect_to_closed_port_raises_connection_error() -> None:
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    proxy = SyslogProxy()
    with pytest.raises(SyslogConnectionError):
        proxy.connect(f"tcp://127.0.0.1:{port}", timeout=1.0)
    assert not proxy.is_connected()
