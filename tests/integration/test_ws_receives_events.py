from __future__ import annotations

import json
import queue
import threading
import time

import pytest
from starlette.websockets import WebSocketDisconnect


def _wait_for_connections(client, expected: int) -> None:
    deadline = time.monotonic() + 2.0
    while client.app.state.ws_manager.connection_count < expected:
        assert time.monotonic() < deadline, "websocket never registered"
        time.sleep(0.01)


def test_websocket_receives_order_lifecycle_events(client, staff_headers, coffee_order) -> None:
    events: "queue.Queue[str]" = queue.Queue()
    errors: "queue.Queue[Exception]" = queue.Queue()

    with client.websocket_connect("/ws?role=kitchen") as websocket:
        _wait_for_connections(client, 1)

        def _reader() -> None:
            try:
                for _ in range(2):
                    events.put(websocket.receive_text())
            except Exception as exc:
                errors.put(exc)

        reader = threading.Thread(target=_reader, daemon=True)
        reader.start()

        place_response = client.post("/v1/orders", json=coffee_order(email="alex@gmail.com"))
        assert place_response.status_code == 201
        order_id = place_response.json()["orderId"]

        status_response = client.patch(
            f"/v1/orders/{order_id}/status",
            json={"status": "preparing"},
            headers={**staff_headers, "X-Request-Id": "kitchen-req-1"},
        )
        assert status_response.status_code == 200

        reader.join(timeout=2.0)
        assert not reader.is_alive(), "timed out waiting for websocket events"
        assert errors.empty(), "unexpected websocket read error"

    created, updated = (json.loads(events.get_nowait()) for _ in range(2))
    assert created["event_type"] == "order-created"
    assert created["payload"]["orderId"] == order_id
    assert created["payload"]["pickupNumber"] == 1
    assert "email" not in created["payload"]
    assert updated["event_type"] == "order-updated"
    assert updated["payload"]["status"] == "preparing"
    assert updated["request_id"] == "kitchen-req-1"


def test_unknown_role_is_refused(client) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?role=admin"):
            pass

    assert exc_info.value.code == 1008
