from __future__ import annotations

import logging
from typing import Any, Callable

from flask_socketio import SocketIO


log = logging.getLogger(__name__)


class SocketIOScheduler:
    """Run a callback after a delay on the Socket.IO background task pool.

    There is no cancel: callbacks must re-check the room when they fire.
    """

    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def call_later(self, delay: float, fn: Callable[..., Any], *args: Any) -> None:
        def _runner() -> None:
            self.socketio.sleep(delay)
            try:
                fn(*args)
            except Exception:
                log.exception("Scheduled callback %s failed", getattr(fn, "__name__", fn))

        self.socketio.start_background_task(_runner)
