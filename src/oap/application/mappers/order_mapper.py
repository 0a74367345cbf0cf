from __future__ import annotations

from oap.application.dto.responses import (
    MoneyResponse,
    OrderItemModifierResponse,
    OrderItemResponse,
    OrderResponse,
)
from oap.domain.common.money import Money
from oap.domain.order.entities import Order, OrderItem


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def _to_item_response(item: OrderItem) -> OrderItemResponse:
    return OrderItemResponse(
        itemId=str(item.item_id),
        menuItemId=item.menu_item_id,
        itemName=item.item_name,
        quantity=item.quantity,
        unitPrice=to_money_response(item.unit_price),
        totalPrice=to_money_response(item.total_price),
        specialInstructions=item.special_instructions,
        modifiers=[
            OrderItemModifierResponse(
                modifierName=modifier.modifier_name,
                priceAdjustment=to_money_response(modifier.price_adjustment),
            )
            for modifier in item.modifiers
        ],
        modifiersDisplay=item.modifiers_display,
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        pickupNumber=order.pickup_number,
        customerName=order.customer_name,
        status=order.status.value,
        items=[_to_item_response(item) for item in order.items],
        subtotal=to_money_response(order.subtotal),
        tax=to_money_response(order.tax),
        total=to_money_response(order.total),
        notes=order.notes,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )
