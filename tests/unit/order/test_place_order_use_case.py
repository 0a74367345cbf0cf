from __future__ import annotations

import json
import sys
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from oap.application.dto.requests import PlaceOrderRequest
from oap.application.ports.repositories import PersistenceError
from oap.application.services.price_verification import PriceVerificationEngine
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.place_order import (
    ORDER_CREATED_MESSAGE,
    InvalidOrderError,
    OrderPersistenceError,
    PlaceOrder,
)
from oap.domain.catalog.entities import MenuItem, ModifierOption
from oap.domain.common.ids import MenuItemId, ModifierOptionId
from oap.domain.common.money import Money
from oap.domain.order.entities import Order, OrderStatus


class FakeCatalog:
    def get_menu_item(self, item_id):
        if int(item_id) != 1:
            return None
        return MenuItem(
            item_id=MenuItemId(1),
            name="House Blend",
            price=Money(amount_cents=500, currency="USD"),
            is_available=True,
        )

    def find_modifier_option(self, name: str):
        if name != "Oat Milk":
            return None
        return ModifierOption(
            option_id=ModifierOptionId(5),
            name="Oat Milk",
            display_name="Oat Milk",
            price_adjustment=Money(amount_cents=75, currency="USD"),
        )


class FixedTaxRate:
    def current_tax_rate(self) -> Decimal:
        return Decimal("0.0825")


class FakeOrderRepository:
    def __init__(self, fail: bool = False) -> None:
        self.saved_orders: list[Order] = []
        self._fail = fail

    def add(self, order: Order) -> Order:
        if self._fail:
            raise PersistenceError("add_order failed: OperationalError")
        numbered = replace(order, pickup_number=len(self.saved_orders) + 1)
        self.saved_orders.append(numbered)
        return numbered


@dataclass
class PublishCall:
    channel: str
    message: str


class FakePublisher:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[PublishCall] = []
        self._fail = fail

    def publish(self, channel: str, message: str) -> None:
        if self._fail:
            raise ConnectionError("broker down")
        self.calls.append(PublishCall(channel=channel, message=message))


class RecordingNotifier:
    def __init__(self) -> None:
        self.confirmed: list[Order] = []
        self.ready: list[Order] = []

    def order_confirmed(self, order: Order) -> None:
        self.confirmed.append(order)

    def order_ready(self, order: Order) -> None:
        self.ready.append(order)


def _use_case(
    order_repository: FakeOrderRepository | None = None,
    publisher: FakePublisher | None = None,
    notifier: RecordingNotifier | None = None,
) -> PlaceOrder:
    return PlaceOrder(
        price_verification=PriceVerificationEngine(
            catalog=FakeCatalog(),
            tax_rate_provider=FixedTaxRate(),
            currency="USD",
        ),
        order_repository=order_repository or FakeOrderRepository(),
        publisher=publisher or FakePublisher(),
        notifier=notifier or RecordingNotifier(),
    )


def _request(**overrides) -> PlaceOrderRequest:
    payload = {
        "customerName": "Alex",
        "items": [
            {
                "menuItemId": 1,
                "itemName": "Coffee",
                "quantity": 2,
                "unitPrice": "5.00",
                "modifiers": [{"modifierName": "Oat Milk", "priceAdjustment": "0.75"}],
            }
        ],
    }
    payload.update(overrides)
    return PlaceOrderRequest.model_validate(payload)


def _trace() -> TraceContext:
    return TraceContext(trace_id="trace-1", request_id="req-1")


def test_place_order_persists_verified_order_and_publishes() -> None:
    order_repository = FakeOrderRepository()
    publisher = FakePublisher()

    response = _use_case(order_repository=order_repository, publisher=publisher).execute(
        request_dto=_request(),
        trace_ctx=_trace(),
    )

    assert response.pickupNumber == 1
    assert response.message == ORDER_CREATED_MESSAGE
    saved = order_repository.saved_orders[0]
    assert str(saved.order_id) == response.orderId
    assert saved.status == OrderStatus.PENDING
    assert (saved.subtotal.amount_cents, saved.tax.amount_cents, saved.total.amount_cents) == (
        1150,
        95,
        1245,
    )

    assert len(publisher.calls) == 1
    assert publisher.calls[0].channel == "events:orders"
    envelope = json.loads(publisher.calls[0].message)
    assert envelope["event_type"] == "order-created"
    assert envelope["request_id"] == "req-1"
    assert envelope["payload"]["pickupNumber"] == 1
    assert envelope["payload"]["items"][0]["modifiersDisplay"] == "Oat Milk (+$0.75)"


def test_place_order_sanitizes_customer_input() -> None:
    order_repository = FakeOrderRepository()
    _use_case(order_repository=order_repository).execute(
        request_dto=_request(
            customerName="  Alex <script>  O'Neil ",
            email="Alex@Gmail.COM",
            notes="<b>no</b> onions javascript:alert(1)",
        ),
        trace_ctx=_trace(),
    )

    saved = order_repository.saved_orders[0]
    assert saved.customer_name == "Alex script O'Neil"
    assert saved.email == "alex@gmail.com"
    assert saved.notes == "no onions alert(1)"


def test_place_order_rejects_name_that_sanitizes_to_empty() -> None:
    order_repository = FakeOrderRepository()
    with pytest.raises(InvalidOrderError) as exc_info:
        _use_case(order_repository=order_repository).execute(
            request_dto=_request(customerName="<>@#$"),
            trace_ctx=_trace(),
        )

    assert exc_info.value.details["errors"][0]["path"] == "customerName"
    assert order_repository.saved_orders == []


def test_place_order_does_not_publish_when_store_fails() -> None:
    publisher = FakePublisher()
    notifier = RecordingNotifier()

    with pytest.raises(OrderPersistenceError):
        _use_case(
            order_repository=FakeOrderRepository(fail=True),
            publisher=publisher,
            notifier=notifier,
        ).execute(request_dto=_request(email="alex@gmail.com"), trace_ctx=_trace())

    assert publisher.calls == []
    assert notifier.confirmed == []


def test_place_order_succeeds_when_publish_fails() -> None:
    order_repository = FakeOrderRepository()

    response = _use_case(
        order_repository=order_repository,
        publisher=FakePublisher(fail=True),
    ).execute(request_dto=_request(), trace_ctx=_trace())

    assert response.pickupNumber == 1
    assert len(order_repository.saved_orders) == 1


def test_place_order_confirms_only_when_email_given() -> None:
    notifier = RecordingNotifier()
    use_case = _use_case(notifier=notifier)

    use_case.execute(request_dto=_request(), trace_ctx=_trace())
    use_case.execute(request_dto=_request(email="alex@gmail.com"), trace_ctx=_trace())

    assert [order.pickup_number for order in notifier.confirmed] == [2]


def test_broadcast_payload_never_contains_email() -> None:
    publisher = FakePublisher()
    _use_case(publisher=publisher).execute(
        request_dto=_request(email="alex@gmail.com"),
        trace_ctx=_trace(),
    )

    assert "alex@gmail.com" not in publisher.calls[0].message
