from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from oap.application.ports.repositories import OptimisticConcurrencyError, PersistenceError
from oap.application.use_cases.active_orders import ListActiveOrders
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.get_order import GetOrder, OrderNotFoundError
from oap.application.use_cases.place_order import OrderPersistenceError
from oap.application.use_cases.update_order_status import (
    InvalidOrderTransitionError,
    OrderConflictError,
    UpdateOrderStatus,
)
from oap.domain.common.ids import OrderId, OrderItemId
from oap.domain.common.money import Money
from oap.domain.order.entities import Order, OrderItem, OrderStatus


def _order(
    order_id: str = "ord_001",
    status: OrderStatus = OrderStatus.PENDING,
    email: str | None = None,
    pickup_number: int = 1,
    minutes_ago: int = 0,
) -> Order:
    created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return Order(
        order_id=OrderId(order_id),
        pickup_number=pickup_number,
        customer_name="Alex",
        email=email,
        status=status,
        items=[
            OrderItem(
                item_id=OrderItemId(f"oit_{order_id}"),
                menu_item_id=None,
                item_name="House Blend",
                quantity=1,
                unit_price=Money(amount_cents=500, currency="USD"),
                total_price=Money(amount_cents=500, currency="USD"),
            )
        ],
        subtotal=Money(amount_cents=500, currency="USD"),
        tax=Money(amount_cents=41, currency="USD"),
        total=Money(amount_cents=541, currency="USD"),
        notes=None,
        created_at=created_at,
        updated_at=created_at,
    )


class FakeOrderRepository:
    def __init__(self, *orders: Order) -> None:
        self.orders = {str(order.order_id): order for order in orders}
        self.race_with: OrderStatus | None = None
        self.fail = False
        self.fail_reads = False

    def get(self, order_id):
        if self.fail_reads:
            raise PersistenceError("get_order failed: OperationalError")
        return self.orders.get(str(order_id))

    def list_active(self) -> list[Order]:
        if self.fail_reads:
            raise PersistenceError("list_active_orders failed: OperationalError")
        return [order for order in self.orders.values() if order.is_active]

    def update_status_with_version(self, order_id, new_status, expected_version, updated_at):
        if self.fail:
            raise PersistenceError("update_order_status failed: OperationalError")
        current = self.orders.get(str(order_id))
        if self.race_with is not None and current is not None:
            current = replace(current, status=self.race_with, version=current.version + 1)
            self.orders[str(order_id)] = current
        if current is None or current.version != expected_version:
            raise OptimisticConcurrencyError(f"order {order_id} version conflict")
        updated = replace(
            current,
            status=new_status,
            updated_at=updated_at,
            version=current.version + 1,
        )
        self.orders[str(order_id)] = updated
        return updated


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def publish(self, channel: str, message: str) -> None:
        self.messages.append(message)


class RecordingNotifier:
    def __init__(self) -> None:
        self.ready: list[Order] = []

    def order_confirmed(self, order: Order) -> None:
        raise AssertionError("status updates never send confirmations")

    def order_ready(self, order: Order) -> None:
        self.ready.append(order)


def _trace() -> TraceContext:
    return TraceContext(trace_id=None, request_id="req-9", actor="kitchen-1")


def _use_case(repository, publisher=None, notifier=None) -> UpdateOrderStatus:
    return UpdateOrderStatus(
        order_repository=repository,
        publisher=publisher or FakePublisher(),
        notifier=notifier or RecordingNotifier(),
    )


def test_advances_order_and_publishes_update() -> None:
    repository = FakeOrderRepository(_order())
    publisher = FakePublisher()

    response = _use_case(repository, publisher).execute(
        OrderId("ord_001"),
        OrderStatus.PREPARING,
        _trace(),
    )

    assert response.status == "preparing"
    assert repository.orders["ord_001"].version == 2
    envelope = json.loads(publisher.messages[0])
    assert envelope["event_type"] == "order-updated"
    assert envelope["payload"]["status"] == "preparing"
    assert envelope["request_id"] == "req-9"


def test_illegal_transition_is_rejected_without_side_effects() -> None:
    repository = FakeOrderRepository(_order())
    publisher = FakePublisher()

    with pytest.raises(InvalidOrderTransitionError):
        _use_case(repository, publisher).execute(OrderId("ord_001"), OrderStatus.READY, _trace())

    assert repository.orders["ord_001"].status == OrderStatus.PENDING
    assert publisher.messages == []


def test_same_status_is_an_illegal_transition() -> None:
    repository = FakeOrderRepository(_order(status=OrderStatus.PREPARING))

    with pytest.raises(InvalidOrderTransitionError):
        _use_case(repository).execute(OrderId("ord_001"), OrderStatus.PREPARING, _trace())


def test_unknown_order_is_not_found() -> None:
    with pytest.raises(OrderNotFoundError) as exc_info:
        _use_case(FakeOrderRepository()).execute(OrderId("ord_404"), OrderStatus.PREPARING, _trace())

    assert "ord_404" not in str(exc_info.value)


def test_lost_race_is_reported_as_conflict() -> None:
    repository = FakeOrderRepository(_order())
    repository.race_with = OrderStatus.CANCELLED

    with pytest.raises(OrderConflictError):
        _use_case(repository).execute(OrderId("ord_001"), OrderStatus.PREPARING, _trace())


def test_store_failure_is_reported_as_persistence_error() -> None:
    repository = FakeOrderRepository(_order())
    repository.fail = True
    publisher = FakePublisher()

    with pytest.raises(OrderPersistenceError):
        _use_case(repository, publisher).execute(OrderId("ord_001"), OrderStatus.CANCELLED, _trace())

    assert publisher.messages == []


def test_ready_notifies_customer_with_email() -> None:
    notifier = RecordingNotifier()
    repository = FakeOrderRepository(
        _order("ord_001", OrderStatus.PREPARING, email="alex@gmail.com"),
        _order("ord_002", OrderStatus.PREPARING, pickup_number=2),
    )
    use_case = _use_case(repository, notifier=notifier)

    use_case.execute(OrderId("ord_001"), OrderStatus.READY, _trace())
    use_case.execute(OrderId("ord_002"), OrderStatus.READY, _trace())

    assert [str(order.order_id) for order in notifier.ready] == ["ord_001"]


def test_cancel_does_not_notify() -> None:
    notifier = RecordingNotifier()
    repository = FakeOrderRepository(_order(status=OrderStatus.READY, email="alex@gmail.com"))

    _use_case(repository, notifier=notifier).execute(
        OrderId("ord_001"),
        OrderStatus.CANCELLED,
        _trace(),
    )

    assert notifier.ready == []


def test_get_order_and_active_list_hide_email() -> None:
    repository = FakeOrderRepository(
        _order("ord_001", email="alex@gmail.com"),
        _order("ord_002", status=OrderStatus.COMPLETED, pickup_number=2),
    )

    order = GetOrder(order_repository=repository).execute(OrderId("ord_001"))
    active = ListActiveOrders(order_repository=repository).execute()

    assert "email" not in order.model_dump()
    assert [entry.orderId for entry in active.orders] == ["ord_001"]


def test_read_failures_are_logged_and_reported_as_persistence_errors(caplog) -> None:
    repository = FakeOrderRepository(_order())
    repository.fail_reads = True
    publisher = FakePublisher()

    with caplog.at_level(logging.ERROR):
        with pytest.raises(OrderPersistenceError):
            _use_case(repository, publisher=publisher).execute(
                OrderId("ord_001"), OrderStatus.PREPARING, _trace()
            )
        with pytest.raises(OrderPersistenceError):
            GetOrder(order_repository=repository).execute(OrderId("ord_001"))
        with pytest.raises(OrderPersistenceError):
            ListActiveOrders(order_repository=repository).execute()

    assert publisher.messages == []
    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("order_read_failed") == 2
    assert messages.count("active_orders_read_failed") == 1
