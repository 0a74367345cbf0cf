from __future__ import annotations

import logging

from oap.application.dto.responses import OrderResponse
from oap.application.mappers.order_mapper import to_order_response
from oap.application.ports.repositories import OrderRepository, PersistenceError
from oap.application.use_cases.place_order import OrderPersistenceError
from oap.domain.common.ids import OrderId

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    def __init__(self, message: str = "order not found") -> None:
        super().__init__(message)


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        try:
            order = self._order_repository.get(order_id)
        except PersistenceError as exc:
            logger.exception("order_read_failed", extra={"order_id": str(order_id)})
            raise OrderPersistenceError("failed to load order") from exc
        if order is None:
            raise OrderNotFoundError()
        return to_order_response(order)
