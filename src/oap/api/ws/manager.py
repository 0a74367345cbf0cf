from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket
from prometheus_client import Gauge

logger = logging.getLogger(__name__)

WS_CONNECTIONS = Gauge(
    "oap_ws_connections",
    "Number of open WebSocket connections by client role.",
    ["role"],
)


class ConnectionManager:
    """Every connected client receives every order event."""

    def __init__(self) -> None:
        self._roles: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._roles)

    async def register(self, websocket: WebSocket, role: str) -> None:
        await websocket.accept()
        async with self._lock:
            self._roles[websocket] = role
            connections = len(self._roles)
        WS_CONNECTIONS.labels(role=role).inc()
        logger.info("ws_client_connected", extra={"role": role, "connections": connections})

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            role = self._roles.pop(websocket, None)
            connections = len(self._roles)
        if role is None:
            return
        WS_CONNECTIONS.labels(role=role).dec()
        logger.info("ws_client_disconnected", extra={"role": role, "connections": connections})

    async def broadcast(self, message_json_str: str) -> None:
        async with self._lock:
            targets = list(self._roles)

        stale: list[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_text(message_json_str)
            except Exception:
                stale.append(websocket)

        for websocket in stale:
            await self.unregister(websocket)
