from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from oap.api.ws.manager import ConnectionManager

router = APIRouter()
logger = logging.getLogger(__name__)

CLIENT_ROLES = frozenset({"kitchen", "customer"})


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    role = websocket.query_params.get("role", "customer").lower()
    if role not in CLIENT_ROLES:
        await websocket.close(code=1008, reason="role must be kitchen or customer")
        return

    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.register(websocket=websocket, role=role)
    try:
        # Clients only listen; inbound frames are read to notice disconnects.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)
    except Exception:
        logger.exception("ws_connection_error", extra={"role": role})
        await manager.unregister(websocket)
