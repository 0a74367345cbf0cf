from __future__ import annotations

import logging
from datetime import datetime, timezone

from oap.application.dto.responses import OrderResponse
from oap.application.mappers.event_envelope import serialize_order_event
from oap.application.mappers.order_mapper import to_order_response
from oap.application.metrics.order_lifecycle import (
    record_order_status,
    record_time_to_ready,
    record_transition,
)
from oap.application.ports.notifier import OrderNotifier
from oap.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from oap.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderRepository,
    PersistenceError,
)
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.get_order import OrderNotFoundError
from oap.application.use_cases.place_order import OrderPersistenceError
from oap.domain.common.ids import OrderId
from oap.domain.order.entities import Order, OrderStatus, OrderTransitionError
from oap.domain.order.events import OrderStatusChanged

logger = logging.getLogger(__name__)


class InvalidOrderTransitionError(Exception):
    pass


class OrderConflictError(Exception):
    pass


class UpdateOrderStatus:
    def __init__(
        self,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        notifier: OrderNotifier,
    ) -> None:
        self._order_repository = order_repository
        self._publisher = publisher
        self._notifier = notifier

    def execute(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        order = self._load(order_id)
        if order is None:
            raise OrderNotFoundError()

        now = datetime.now(timezone.utc)
        try:
            order.transition_to(new_status, now)
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc

        try:
            persisted_order = self._order_repository.update_status_with_version(
                order_id=order.order_id,
                new_status=new_status,
                expected_version=order.version,
                updated_at=now,
            )
        except OptimisticConcurrencyError as exc:
            if self._load(order_id) is None:
                raise OrderNotFoundError() from exc
            raise OrderConflictError(
                "order was updated concurrently, reload and try again"
            ) from exc
        except PersistenceError as exc:
            logger.exception("order_status_update_failed", extra={"order_id": str(order_id)})
            raise OrderPersistenceError("failed to update order status") from exc

        event = OrderStatusChanged(
            order_id=persisted_order.order_id,
            from_status=order.status,
            to_status=new_status,
            occurred_at=now,
        )
        record_transition(from_status=event.from_status, to_status=event.to_status)
        record_order_status(persisted_order)
        if new_status == OrderStatus.READY:
            record_time_to_ready(persisted_order, now=now)
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(event.order_id),
                "pickup_number": persisted_order.pickup_number,
                "from_status": event.from_status.value,
                "to_status": event.to_status.value,
                **trace_ctx.log_extra(),
            },
        )

        self._publish(event, persisted_order, trace_ctx)
        self._run_side_effects(event, persisted_order)
        return to_order_response(persisted_order)

    def _load(self, order_id: OrderId) -> Order | None:
        try:
            return self._order_repository.get(order_id)
        except PersistenceError as exc:
            logger.exception("order_read_failed", extra={"order_id": str(order_id)})
            raise OrderPersistenceError("failed to load order") from exc

    def _publish(self, event: OrderStatusChanged, order: Order, trace_ctx: TraceContext) -> None:
        message = serialize_order_event(
            event_type=event.event_type,
            occurred_at=event.occurred_at,
            order=order,
            trace_id=trace_ctx.trace_id,
            request_id=trace_ctx.request_id,
        )
        try:
            self._publisher.publish(channel=ORDER_EVENTS_CHANNEL, message=message)
        except Exception:
            logger.exception(
                "order_event_publish_failed",
                extra={"order_id": str(event.order_id), "event_type": event.event_type},
            )

    def _run_side_effects(self, event: OrderStatusChanged, order: Order) -> None:
        # Only preparing -> ready notifies the customer; the rest is client-side state.
        if event.to_status != OrderStatus.READY or not order.email:
            return
        try:
            self._notifier.order_ready(order)
        except Exception:
            logger.exception(
                "notification_failed",
                extra={"order_id": str(order.order_id), "kind": "order_ready"},
            )
