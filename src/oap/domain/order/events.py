from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from oap.domain.common.ids import OrderId
from oap.domain.order.entities import OrderStatus

ORDER_CREATED = "order-created"
ORDER_UPDATED = "order-updated"


@dataclass(frozen=True)
class OrderCreated:
    order_id: OrderId
    pickup_number: int
    occurred_at: datetime

    event_type: str = ORDER_CREATED


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: OrderId
    from_status: OrderStatus
    to_status: OrderStatus
    occurred_at: datetime

    event_type: str = ORDER_UPDATED
