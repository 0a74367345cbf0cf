from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class OrderItemModifierResponse(BaseModel):
    modifierName: str
    priceAdjustment: MoneyResponse


class OrderItemResponse(BaseModel):
    itemId: str
    menuItemId: int | None = None
    itemName: str
    quantity: int
    unitPrice: MoneyResponse
    totalPrice: MoneyResponse
    specialInstructions: str | None = None
    modifiers: list[OrderItemModifierResponse] = Field(default_factory=list)
    modifiersDisplay: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    pickupNumber: int | None = None
    customerName: str
    status: str
    items: list[OrderItemResponse] = Field(default_factory=list)
    subtotal: MoneyResponse
    tax: MoneyResponse
    total: MoneyResponse
    notes: str | None = None
    createdAt: dt.datetime
    updatedAt: dt.datetime


class PlaceOrderResponse(BaseModel):
    orderId: str
    pickupNumber: int
    message: str


class ActiveOrdersResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class OrderStatsResponse(BaseModel):
    date: dt.date
    orders: int
    revenue: MoneyResponse


class SettingResponse(BaseModel):
    key: str
    value: str


class SettingsResponse(BaseModel):
    settings: dict[str, str] = Field(default_factory=dict)


class PublicSettingsResponse(BaseModel):
    taxRate: str


class AnnouncementResponse(BaseModel):
    enabled: bool
    text: str
