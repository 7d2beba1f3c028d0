from __future__ import annotations

import pytest

from spyword.game import service
from spyword.server import create_app


class ManualScheduler:
    """Collects scheduled callbacks so tests decide when timers fire."""

    def __init__(self) -> None:
        self.pending: list[tuple[float, object, tuple]] = []

    def call_later(self, delay, fn, *args) -> None:
        self.pending.append((delay, fn, args))

    def run_next(self) -> None:
        _, fn, args = self.pending.pop(0)
        fn(*args)

    def run_all(self, limit: int = 50) -> int:
        ran = 0
        while self.pending and ran < limit:
            self.run_next()
            ran += 1
        return ran


@pytest.fixture(autouse=True)
def clean_rooms():
    service.clear_rooms()
    yield
    service.clear_rooms()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def app_socketio(scheduler):
    return create_app(
        {"TESTING": True, "SOCKETIO_ASYNC_MODE": "threading", "TRUST_PROXY_HEADERS": False},
        scheduler=scheduler,
    )


@pytest.fixture
def http(app_socketio):
    app, _ = app_socketio
    return app.test_client()


@pytest.fixture
def connect(app_socketio):
    app, socketio = app_socketio
    clients = []

    def _connect():
        client = socketio.test_client(app)
        clients.append(client)
        return client

    yield _connect

    for client in clients:
        if client.is_connected():
            client.disconnect()
