from __future__ import annotations

import logging

from oap.application.dto.responses import ActiveOrdersResponse
from oap.application.mappers.order_mapper import to_order_response
from oap.application.metrics.order_lifecycle import record_active_orders
from oap.application.ports.repositories import OrderRepository, PersistenceError
from oap.application.use_cases.place_order import OrderPersistenceError

logger = logging.getLogger(__name__)


class ListActiveOrders:
    """Kitchen queue: pending, then preparing, then ready; oldest first in each group."""

    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self) -> ActiveOrdersResponse:
        try:
            orders = self._order_repository.list_active()
        except PersistenceError as exc:
            logger.exception("active_orders_read_failed")
            raise OrderPersistenceError("failed to load active orders") from exc
        record_active_orders(len(orders))
        return ActiveOrdersResponse(orders=[to_order_response(order) for order in orders])
