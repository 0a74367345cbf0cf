from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from oap.domain.common.ids import MenuItemId, OrderId, OrderItemId
from oap.domain.common.money import Money, sum_money

MAX_ITEM_QUANTITY = 100


class OrderStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)
TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

_FORWARD_TRANSITIONS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.COMPLETED,
}


def is_allowed_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    if from_status.is_terminal:
        return False
    if to_status == OrderStatus.CANCELLED:
        return True
    return _FORWARD_TRANSITIONS.get(from_status) == to_status


@dataclass(frozen=True)
class OrderItemModifier:
    modifier_name: str
    price_adjustment: Money

    def __post_init__(self) -> None:
        if not self.modifier_name.strip():
            raise ValueError("modifier_name must be non-empty")

    def display(self) -> str:
        if self.price_adjustment.amount_cents > 0:
            return f"{self.modifier_name} (+{self.price_adjustment.format()})"
        return self.modifier_name


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    menu_item_id: MenuItemId | None
    item_name: str
    quantity: int
    unit_price: Money
    total_price: Money
    special_instructions: str | None = None
    modifiers: list[OrderItemModifier] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.item_name.strip():
            raise ValueError("item_name must be non-empty")
        if self.quantity < 1 or self.quantity > MAX_ITEM_QUANTITY:
            raise ValueError(f"quantity must be between 1 and {MAX_ITEM_QUANTITY}")
        if self.unit_price.currency != self.total_price.currency:
            raise ValueError("total_price currency must match unit_price currency")
        if self.total_price != self.expected_total():
            raise ValueError("total_price must equal (unit_price + modifiers) * quantity")

    def expected_total(self) -> Money:
        per_unit = self.unit_price + sum_money(
            [modifier.price_adjustment for modifier in self.modifiers],
            self.unit_price.currency,
        )
        return per_unit.times(self.quantity)

    @property
    def modifiers_display(self) -> str | None:
        if not self.modifiers:
            return None
        return ", ".join(modifier.display() for modifier in self.modifiers)


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    pickup_number: int | None
    customer_name: str
    email: str | None
    status: OrderStatus
    items: list[OrderItem]
    subtotal: Money
    tax: Money
    total: Money
    notes: str | None
    created_at: datetime
    updated_at: datetime
    version: int = 1

    def __post_init__(self) -> None:
        if not self.customer_name.strip():
            raise ValueError("customer_name must be non-empty")
        if not self.items:
            raise ValueError("order must contain at least one item")
        if self.pickup_number is not None and self.pickup_number < 1:
            raise ValueError("pickup_number must be >= 1")
        currency = self.subtotal.currency
        expected_subtotal = sum_money([item.total_price for item in self.items], currency)
        if self.subtotal != expected_subtotal:
            raise ValueError("order subtotal must equal sum of item totals")
        if self.total != self.subtotal + self.tax:
            raise ValueError("order total must equal subtotal + tax")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def transition_to(self, new_status: OrderStatus, now: datetime) -> Order:
        if not is_allowed_transition(self.status, new_status):
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to status={new_status.value}"
            )
        return replace(self, status=new_status, updated_at=now)


def create_pending_order(
    order_id: OrderId,
    customer_name: str,
    email: str | None,
    items: list[OrderItem],
    tax: Money,
    notes: str | None,
    now: datetime,
) -> Order:
    if not items:
        raise ValueError("order must contain at least one item")

    subtotal = sum_money([item.total_price for item in items], tax.currency)
    return Order(
        order_id=order_id,
        pickup_number=None,
        customer_name=customer_name,
        email=email,
        status=OrderStatus.PENDING,
        items=items,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        notes=notes,
        created_at=now,
        updated_at=now,
    )


class OrderTransitionError(Exception):
    pass
