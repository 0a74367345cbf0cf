from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from oap.domain.common.ids import MenuItemId, OrderId, OrderItemId
from oap.domain.common.money import Money
from oap.domain.order.entities import (
    Order,
    OrderItem,
    OrderItemModifier,
    OrderStatus,
    OrderTransitionError,
    create_pending_order,
    is_allowed_transition,
)


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _coffee(quantity: int = 2) -> OrderItem:
    return OrderItem(
        item_id=OrderItemId("oit_001"),
        menu_item_id=MenuItemId(1),
        item_name="House Blend",
        quantity=quantity,
        unit_price=_usd(500),
        total_price=_usd(575 * quantity),
        modifiers=[OrderItemModifier(modifier_name="Oat Milk", price_adjustment=_usd(75))],
    )


def _pending_order() -> Order:
    now = datetime.now(timezone.utc)
    order = create_pending_order(
        order_id=OrderId("ord_001"),
        customer_name="Alex",
        email=None,
        items=[_coffee()],
        tax=_usd(95),
        notes=None,
        now=now,
    )
    return replace(order, pickup_number=1)


def test_order_item_quantity_bounds() -> None:
    with pytest.raises(ValueError):
        _coffee(quantity=0)
    with pytest.raises(ValueError):
        _coffee(quantity=101)


def test_order_item_total_must_include_modifiers() -> None:
    with pytest.raises(ValueError):
        OrderItem(
            item_id=OrderItemId("oit_001"),
            menu_item_id=None,
            item_name="House Blend",
            quantity=2,
            unit_price=_usd(500),
            total_price=_usd(1000),
            modifiers=[OrderItemModifier(modifier_name="Oat Milk", price_adjustment=_usd(75))],
        )


def test_create_pending_order_sums_items_and_tax() -> None:
    order = _pending_order()

    assert order.status == OrderStatus.PENDING
    assert order.subtotal == _usd(1150)
    assert order.total == _usd(1245)
    assert order.is_active


def test_order_total_must_equal_subtotal_plus_tax() -> None:
    order = _pending_order()
    with pytest.raises(ValueError):
        replace(order, total=_usd(1200))


def test_modifiers_display_shows_only_non_zero_adjustments() -> None:
    item = OrderItem(
        item_id=OrderItemId("oit_002"),
        menu_item_id=None,
        item_name="Twisted Lemonade",
        quantity=1,
        unit_price=_usd(500),
        total_price=_usd(600),
        modifiers=[
            OrderItemModifier(modifier_name="Strawberry", price_adjustment=_usd(0)),
            OrderItemModifier(modifier_name="Extra Shot", price_adjustment=_usd(100)),
        ],
    )

    assert item.modifiers_display == "Strawberry, Extra Shot (+$1.00)"
    assert _coffee().modifiers_display == "Oat Milk (+$0.75)"


@pytest.mark.parametrize(
    ("from_status", "to_status", "allowed"),
    [
        (OrderStatus.PENDING, OrderStatus.PREPARING, True),
        (OrderStatus.PREPARING, OrderStatus.READY, True),
        (OrderStatus.READY, OrderStatus.COMPLETED, True),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
        (OrderStatus.READY, OrderStatus.CANCELLED, True),
        (OrderStatus.PENDING, OrderStatus.READY, False),
        (OrderStatus.PREPARING, OrderStatus.PENDING, False),
        (OrderStatus.PENDING, OrderStatus.PENDING, False),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
    ],
)
def test_transition_table(from_status: OrderStatus, to_status: OrderStatus, allowed: bool) -> None:
    assert is_allowed_transition(from_status, to_status) is allowed


def test_transition_to_returns_new_order_and_keeps_original() -> None:
    order = _pending_order()
    later = order.created_at + timedelta(minutes=3)

    preparing = order.transition_to(OrderStatus.PREPARING, later)

    assert preparing.status == OrderStatus.PREPARING
    assert preparing.updated_at == later
    assert order.status == OrderStatus.PENDING


def test_terminal_orders_reject_every_transition() -> None:
    now = datetime.now(timezone.utc)
    completed = (
        _pending_order()
        .transition_to(OrderStatus.PREPARING, now)
        .transition_to(OrderStatus.READY, now)
        .transition_to(OrderStatus.COMPLETED, now)
    )

    assert not completed.is_active
    for status in OrderStatus:
        with pytest.raises(OrderTransitionError):
            completed.transition_to(status, now)
