from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from oap.application.dto.requests import PlaceOrderItemRequest, PlaceOrderRequest
from oap.application.dto.responses import PlaceOrderResponse
from oap.application.mappers.event_envelope import serialize_order_event
from oap.application.metrics.order_lifecycle import record_order_status
from oap.application.ports.notifier import OrderNotifier
from oap.application.ports.publisher import ORDER_EVENTS_CHANNEL, EventPublisher
from oap.application.ports.repositories import OrderRepository, PersistenceError
from oap.application.services.price_verification import (
    InvalidOrderItemError,
    PriceVerificationEngine,
    ProposedItem,
    ProposedModifier,
    VerifiedPricing,
)
from oap.application.services.sanitize import (
    sanitize_email,
    sanitize_instructions,
    sanitize_menu_item_name,
    sanitize_name,
    sanitize_text,
)
from oap.application.use_cases.context import TraceContext
from oap.domain.common.ids import OrderId
from oap.domain.common.money import Money
from oap.domain.order.entities import Order, create_pending_order
from oap.domain.order.events import OrderCreated

logger = logging.getLogger(__name__)

ORDER_CREATED_MESSAGE = "Order created successfully"


class InvalidOrderError(Exception):
    def __init__(self, message: str, errors: list[dict[str, str]]) -> None:
        super().__init__(message)
        self.details = {"errors": errors}


class OrderPersistenceError(Exception):
    pass


class PlaceOrder:
    def __init__(
        self,
        price_verification: PriceVerificationEngine,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        notifier: OrderNotifier,
    ) -> None:
        self._price_verification = price_verification
        self._order_repository = order_repository
        self._publisher = publisher
        self._notifier = notifier

    def execute(self, request_dto: PlaceOrderRequest, trace_ctx: TraceContext) -> PlaceOrderResponse:
        customer_name = sanitize_name(request_dto.customer_name)
        if customer_name is None:
            raise InvalidOrderError(
                "customer name is required",
                [{"path": "customerName", "message": "customer name is required"}],
            )

        try:
            pricing = self._price_verification.verify(
                [_to_proposed_item(item) for item in request_dto.items]
            )
        except InvalidOrderItemError as exc:
            raise InvalidOrderError(str(exc), exc.errors) from exc
        _log_client_total_mismatch(request_dto, pricing)

        now = datetime.now(timezone.utc)
        order = create_pending_order(
            order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
            customer_name=customer_name,
            email=sanitize_email(request_dto.email),
            items=pricing.items,
            tax=pricing.tax,
            notes=sanitize_text(request_dto.notes),
            now=now,
        )

        try:
            persisted_order = self._order_repository.add(order)
        except PersistenceError as exc:
            logger.exception("order_create_failed", extra={"order_id": str(order.order_id)})
            raise OrderPersistenceError("failed to create order") from exc

        pickup_number = persisted_order.pickup_number or 0
        event = OrderCreated(
            order_id=persisted_order.order_id,
            pickup_number=pickup_number,
            occurred_at=persisted_order.created_at,
        )
        record_order_status(persisted_order)
        logger.info(
            "order_created",
            extra={
                "order_id": str(event.order_id),
                "pickup_number": event.pickup_number,
                "total_cents": persisted_order.total.amount_cents,
                "fallback_count": len(pricing.fallbacks),
            },
        )
        self._publish(event, persisted_order, trace_ctx)
        if persisted_order.email:
            try:
                self._notifier.order_confirmed(persisted_order)
            except Exception:
                logger.exception(
                    "notification_failed",
                    extra={"order_id": str(event.order_id), "kind": "order_confirmed"},
                )

        return PlaceOrderResponse(
            orderId=str(persisted_order.order_id),
            pickupNumber=pickup_number,
            message=ORDER_CREATED_MESSAGE,
        )

    def _publish(self, event: OrderCreated, order: Order, trace_ctx: TraceContext) -> None:
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


def _to_proposed_item(item: PlaceOrderItemRequest) -> ProposedItem:
    return ProposedItem(
        menu_item_id=item.menu_item_id,
        item_name=sanitize_menu_item_name(item.item_name) or "Unknown Item",
        quantity=item.quantity,
        unit_price=item.unit_price,
        special_instructions=sanitize_instructions(item.special_instructions),
        modifiers=[
            ProposedModifier(
                modifier_name=sanitize_menu_item_name(modifier.modifier_name) or "Unknown",
                price_adjustment=modifier.price_adjustment,
            )
            for modifier in item.modifiers
        ],
    )


def _log_client_total_mismatch(request_dto: PlaceOrderRequest, pricing: VerifiedPricing) -> None:
    submitted = {
        "subtotal": request_dto.subtotal,
        "tax": request_dto.tax,
        "total": request_dto.total,
    }
    verified = {"subtotal": pricing.subtotal, "tax": pricing.tax, "total": pricing.total}
    mismatched = [
        name
        for name, value in submitted.items()
        if value is not None and _to_cents(value, verified[name]) != verified[name].amount_cents
    ]
    if mismatched:
        logger.info("client_total_corrected", extra={"fields": ",".join(mismatched)})


def _to_cents(value: Decimal, reference: Money) -> int:
    return Money.from_decimal(value, reference.currency).amount_cents
