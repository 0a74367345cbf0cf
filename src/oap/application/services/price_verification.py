"""Authoritative order pricing.

Client-submitted prices are only trusted when the catalog has nothing to say
about an item or modifier. Every such fallback is logged and counted so that
ad hoc items stay visible to whoever audits the till.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

from oap.application.metrics.order_lifecycle import record_price_fallback
from oap.application.ports.pricing import TaxRateProvider
from oap.application.ports.repositories import CatalogRepository
from oap.domain.common.ids import MenuItemId, OrderItemId
from oap.domain.common.money import Money, sum_money
from oap.domain.order.entities import MAX_ITEM_QUANTITY, OrderItem, OrderItemModifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProposedModifier:
    modifier_name: str
    price_adjustment: Decimal = Decimal("0")


@dataclass(frozen=True)
class ProposedItem:
    item_name: str
    quantity: int
    unit_price: Decimal
    menu_item_id: int | None = None
    special_instructions: str | None = None
    modifiers: list[ProposedModifier] = field(default_factory=list)


@dataclass(frozen=True)
class PriceFallback:
    kind: str
    reference: str


@dataclass(frozen=True)
class VerifiedPricing:
    items: list[OrderItem]
    subtotal: Money
    tax_rate: Decimal
    tax: Money
    total: Money
    fallbacks: list[PriceFallback] = field(default_factory=list)


class InvalidOrderItemError(Exception):
    def __init__(self, message: str, errors: list[dict[str, str]]) -> None:
        super().__init__(message)
        self.errors = errors


class PriceVerificationEngine:
    def __init__(
        self,
        catalog: CatalogRepository,
        tax_rate_provider: TaxRateProvider,
        currency: str,
    ) -> None:
        self._catalog = catalog
        self._tax_rate_provider = tax_rate_provider
        self._currency = currency

    def verify(self, proposed_items: list[ProposedItem]) -> VerifiedPricing:
        _validate(proposed_items)

        fallbacks: list[PriceFallback] = []
        items = [self._verify_item(proposed, fallbacks) for proposed in proposed_items]
        subtotal = sum_money([item.total_price for item in items], self._currency)
        tax_rate = self._tax_rate_provider.current_tax_rate()
        tax = subtotal.apply_rate(tax_rate)
        return VerifiedPricing(
            items=items,
            subtotal=subtotal,
            tax_rate=tax_rate,
            tax=tax,
            total=subtotal + tax,
            fallbacks=fallbacks,
        )

    def _verify_item(self, proposed: ProposedItem, fallbacks: list[PriceFallback]) -> OrderItem:
        menu_item = None
        if proposed.menu_item_id is not None:
            menu_item = self._catalog.get_menu_item(MenuItemId(proposed.menu_item_id))
            if menu_item is not None and not self._priced_in_cafe_currency(
                menu_item.price, "menu_item"
            ):
                menu_item = None

        if menu_item is not None:
            unit_price = menu_item.price
            item_name = menu_item.name
        else:
            unit_price = Money.from_decimal(proposed.unit_price, self._currency)
            item_name = proposed.item_name
            reference = (
                str(proposed.menu_item_id) if proposed.menu_item_id is not None else "none"
            )
            self._flag_fallback(fallbacks, "menu_item", reference, item_name)

        modifiers = [self._verify_modifier(modifier, fallbacks) for modifier in proposed.modifiers]
        per_unit = unit_price + sum_money(
            [modifier.price_adjustment for modifier in modifiers], self._currency
        )
        return OrderItem(
            item_id=OrderItemId(f"oit_{uuid4().hex[:12]}"),
            menu_item_id=menu_item.item_id if menu_item is not None else None,
            item_name=item_name,
            quantity=proposed.quantity,
            unit_price=unit_price,
            total_price=per_unit.times(proposed.quantity),
            special_instructions=proposed.special_instructions,
            modifiers=modifiers,
        )

    def _verify_modifier(
        self,
        proposed: ProposedModifier,
        fallbacks: list[PriceFallback],
    ) -> OrderItemModifier:
        option = self._catalog.find_modifier_option(proposed.modifier_name)
        if option is not None and not self._priced_in_cafe_currency(
            option.price_adjustment, "modifier"
        ):
            option = None
        if option is not None:
            adjustment = option.price_adjustment
        else:
            adjustment = Money.from_decimal(proposed.price_adjustment, self._currency)
            self._flag_fallback(fallbacks, "modifier", proposed.modifier_name, proposed.modifier_name)
        return OrderItemModifier(modifier_name=proposed.modifier_name, price_adjustment=adjustment)

    def _priced_in_cafe_currency(self, price: Money, kind: str) -> bool:
        if price.currency == self._currency:
            return True
        logger.warning(
            "catalog_currency_mismatch",
            extra={"kind": kind, "catalog_currency": price.currency, "currency": self._currency},
        )
        return False

    def _flag_fallback(
        self,
        fallbacks: list[PriceFallback],
        kind: str,
        reference: str,
        name: str,
    ) -> None:
        fallbacks.append(PriceFallback(kind=kind, reference=reference))
        record_price_fallback(kind)
        logger.warning(
            "price_fallback",
            extra={"kind": kind, "reference": reference, "item_name": name},
        )


def _validate(proposed_items: list[ProposedItem]) -> None:
    errors: list[dict[str, str]] = []
    if not proposed_items:
        errors.append({"path": "items", "message": "order must have at least one item"})
    for index, item in enumerate(proposed_items):
        if not item.item_name or not item.item_name.strip():
            errors.append({"path": f"items.{index}.itemName", "message": "item name is required"})
        if item.quantity < 1 or item.quantity > MAX_ITEM_QUANTITY:
            errors.append(
                {
                    "path": f"items.{index}.quantity",
                    "message": f"quantity must be between 1 and {MAX_ITEM_QUANTITY}",
                }
            )
        if item.unit_price < 0:
            errors.append({"path": f"items.{index}.unitPrice", "message": "must be >= 0"})
        for mod_index, modifier in enumerate(item.modifiers):
            if not modifier.modifier_name or not modifier.modifier_name.strip():
                errors.append(
                    {
                        "path": f"items.{index}.modifiers.{mod_index}.modifierName",
                        "message": "modifier name is required",
                    }
                )
            if modifier.price_adjustment < 0:
                errors.append(
                    {
                        "path": f"items.{index}.modifiers.{mod_index}.priceAdjustment",
                        "message": "must be >= 0",
                    }
                )
    if errors:
        raise InvalidOrderItemError("order items are invalid", errors)
