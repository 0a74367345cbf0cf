from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from oap.application.mappers.order_mapper import to_order_response
from oap.domain.order.entities import Order


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=to_order_response(order).model_dump(mode="json"),
    )
