from __future__ import annotations

from typing import Protocol

from oap.domain.order.entities import Order


class OrderNotifier(Protocol):
    """Fire-and-forget customer notifications.

    Implementations must not block the caller on delivery; callers still
    guard each call because a failed notification never affects the order.
    """

    def order_confirmed(self, order: Order) -> None: ...

    def order_ready(self, order: Order) -> None: ...
