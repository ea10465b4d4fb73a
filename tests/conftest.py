from __future__ import annotations

import socket
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import Any

import pytest

from lib_log_syslog.adapters.syslog_proxy import SyslogProxy, SyslogProxyOptions
from lib_log_syslog.domain.events import LogEvent
from lib_log_syslog.domain.levels import LogLevel
from tests._fakes import FakeDialer


@pytest.fixture
def fake_dialer() -> FakeDialer:
    return FakeDialer()


@pytest.fixture
def proxy(fake_dialer: FakeDialer) -> SyslogProxy:
    return SyslogProxy(SyslogProxyOptions(tag="tests"), dialer=fake_dialer)


@pytest.fixture
def connected_proxy(proxy: SyslogProxy) -> SyslogProxy:
    proxy.connect("tcp://collector.example:514")
    return proxy


@pytest.fixture
def event_factory() -> Callable[[dict[str, Any] | None], LogEvent]:
    def _factory(overrides: dict[str, Any] | None = None) -> LogEvent:
        payload: dict[str, Any] = {
            "timestamp": datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc),
            "level": LogLevel.INFO,
            "message": "hello",
            "logger_name": "tests",
            "extra": {},
        }
        if overrides:
            payload.update(overrides)
        return LogEvent(**payload)

    return _factory


@pytest.fixture
def tcp_listener() -> Iterator[socket.socket]:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    server.settimeout(2.0)
    try:
        yield server
    finally:
        server.close()
