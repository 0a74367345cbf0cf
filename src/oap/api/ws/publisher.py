"""In-process event delivery for single-process deployments.

Use cases run in FastAPI's threadpool, so publishing hands the broadcast to
the event loop that owns the sockets and waits briefly for it to finish.
"""

from __future__ import annotations

import asyncio
import logging
import threading

from oap.api.ws.manager import ConnectionManager
from oap.application.ports.publisher import EventPublisher

logger = logging.getLogger(__name__)


class WebSocketEventPublisher(EventPublisher):
    def __init__(self, manager: ConnectionManager, timeout_seconds: float = 2.0) -> None:
        self._manager = manager
        self._timeout_seconds = timeout_seconds
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread_id: int | None = None

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._loop_thread_id = threading.get_ident()

    def unbind(self) -> None:
        self._loop = None
        self._loop_thread_id = None

    def publish(self, channel: str, message: str) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("order_event_dropped", extra={"channel": channel, "reason": "no loop"})
            return

        if threading.get_ident() == self._loop_thread_id:
            loop.create_task(self._manager.broadcast(message))
            return

        future = asyncio.run_coroutine_threadsafe(self._manager.broadcast(message), loop)
        future.result(timeout=self._timeout_seconds)
