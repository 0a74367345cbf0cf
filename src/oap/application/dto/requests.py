from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from oap.domain.order.entities import MAX_ITEM_QUANTITY, OrderStatus


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class PlaceOrderModifierRequest(CamelBaseModel):
    modifier_name: str = Field(min_length=1, max_length=100)
    price_adjustment: Decimal = Field(default=Decimal("0"), ge=0)


class PlaceOrderItemRequest(CamelBaseModel):
    menu_item_id: int | None = Field(default=None, gt=0)
    item_name: str = Field(min_length=1, max_length=100)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal | None = Field(default=None, ge=0)
    special_instructions: str | None = Field(default=None, max_length=500)
    modifiers: list[PlaceOrderModifierRequest] = Field(default_factory=list, max_length=20)


class PlaceOrderRequest(CamelBaseModel):
    customer_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    items: list[PlaceOrderItemRequest] = Field(min_length=1, max_length=50)
    subtotal: Decimal | None = Field(default=None, ge=0)
    tax: Decimal | None = Field(default=None, ge=0)
    total: Decimal | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=500)


class UpdateOrderStatusRequest(CamelBaseModel):
    status: OrderStatus


class UpdateSettingRequest(CamelBaseModel):
    value: str = Field(max_length=500)
