from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Gauge, Histogram

from oap.domain.order.entities import Order, OrderStatus

ORDERS_TOTAL = Counter(
    "oap_orders_total",
    "Total number of orders observed by status.",
    ["status"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "oap_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_READY_SECONDS = Histogram(
    "oap_order_time_to_ready_seconds",
    "Time between order creation and readiness for pickup.",
)

ACTIVE_ORDERS = Gauge(
    "oap_active_orders",
    "Number of active orders returned by the last kitchen query.",
)

PRICE_FALLBACK_TOTAL = Counter(
    "oap_price_fallback_total",
    "Total number of prices taken from the client because the catalog had no match.",
    ["kind"],
)

NOTIFICATION_FAILURES_TOTAL = Counter(
    "oap_notification_failures_total",
    "Total number of customer notifications that could not be delivered.",
    ["kind"],
)


def record_order_status(order: Order) -> None:
    ORDERS_TOTAL.labels(status=order.status.value).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_ready(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_READY_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_active_orders(size: int) -> None:
    ACTIVE_ORDERS.set(size)


def record_price_fallback(kind: str) -> None:
    PRICE_FALLBACK_TOTAL.labels(kind=kind).inc()


def record_notification_failure(kind: str) -> None:
    NOTIFICATION_FAILURES_TOTAL.labels(kind=kind).inc()
