from __future__ import annotations

import logging
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from prometheus_client import REGISTRY

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from oap.application.services.price_verification import (
    InvalidOrderItemError,
    PriceVerificationEngine,
    ProposedItem,
    ProposedModifier,
)
from oap.domain.catalog.entities import MenuItem, ModifierOption
from oap.domain.common.ids import MenuItemId, ModifierOptionId
from oap.domain.common.money import Money


class FakeCatalog:
    def __init__(self) -> None:
        self.items = {
            1: MenuItem(
                item_id=MenuItemId(1),
                name="House Blend",
                price=Money(amount_cents=500, currency="USD"),
                is_available=True,
            )
        }
        self.options = [
            ModifierOption(
                option_id=ModifierOptionId(5),
                name="Oat Milk",
                display_name="Oat Milk",
                price_adjustment=Money(amount_cents=75, currency="USD"),
            )
        ]
        self.item_lookups: list[int] = []

    def get_menu_item(self, item_id):
        self.item_lookups.append(int(item_id))
        return self.items.get(int(item_id))

    def find_modifier_option(self, name: str):
        return next((option for option in self.options if option.matches(name)), None)


class FixedTaxRate:
    def __init__(self, rate: str = "0.0825") -> None:
        self.rate = Decimal(rate)
        self.calls = 0

    def current_tax_rate(self) -> Decimal:
        self.calls += 1
        return self.rate


def _engine(catalog: FakeCatalog | None = None, tax: FixedTaxRate | None = None):
    return PriceVerificationEngine(
        catalog=catalog or FakeCatalog(),
        tax_rate_provider=tax or FixedTaxRate(),
        currency="USD",
    )


def _coffee(unit_price: str = "5.00", adjustment: str = "0.75") -> ProposedItem:
    return ProposedItem(
        menu_item_id=1,
        item_name="Coffee",
        quantity=2,
        unit_price=Decimal(unit_price),
        modifiers=[ProposedModifier(modifier_name="Oat Milk", price_adjustment=Decimal(adjustment))],
    )


def _fallback_count(kind: str) -> float:
    return REGISTRY.get_sample_value("oap_price_fallback_total", {"kind": kind}) or 0.0


def test_catalog_prices_produce_expected_totals() -> None:
    pricing = _engine().verify([_coffee()])

    assert pricing.subtotal.amount_cents == 1150
    assert pricing.tax.amount_cents == 95
    assert pricing.total.amount_cents == 1245
    assert pricing.fallbacks == []
    item = pricing.items[0]
    assert item.item_name == "House Blend"
    assert item.unit_price.amount_cents == 500
    assert item.total_price.amount_cents == 1150
    assert item.modifiers[0].price_adjustment.amount_cents == 75


def test_client_prices_are_ignored_when_catalog_matches() -> None:
    pricing = _engine().verify([_coffee(unit_price="0.01", adjustment="0.00")])

    assert pricing.items[0].unit_price.amount_cents == 500
    assert pricing.items[0].modifiers[0].price_adjustment.amount_cents == 75
    assert pricing.total.amount_cents == 1245


def test_unknown_item_and_modifier_fall_back_to_client_price(caplog) -> None:
    before_item = _fallback_count("menu_item")
    before_modifier = _fallback_count("modifier")
    proposed = ProposedItem(
        menu_item_id=99,
        item_name="Seasonal Scone",
        quantity=1,
        unit_price=Decimal("3.50"),
        modifiers=[ProposedModifier(modifier_name="Clotted Cream", price_adjustment=Decimal("1"))],
    )

    with caplog.at_level(logging.WARNING):
        pricing = _engine().verify([proposed])

    assert pricing.items[0].unit_price.amount_cents == 350
    assert pricing.items[0].menu_item_id is None
    assert pricing.items[0].item_name == "Seasonal Scone"
    assert pricing.subtotal.amount_cents == 450
    assert [fallback.kind for fallback in pricing.fallbacks] == ["menu_item", "modifier"]
    assert _fallback_count("menu_item") == before_item + 1
    assert _fallback_count("modifier") == before_modifier + 1
    assert [record.getMessage() for record in caplog.records].count("price_fallback") == 2


def test_item_without_catalog_reference_is_a_fallback() -> None:
    catalog = FakeCatalog()
    pricing = _engine(catalog=catalog).verify(
        [ProposedItem(item_name="Water", quantity=1, unit_price=Decimal("0"))]
    )

    assert catalog.item_lookups == []
    assert pricing.total.amount_cents == 0
    assert pricing.fallbacks[0].reference == "none"


def test_invalid_item_rejects_whole_order_before_lookups() -> None:
    catalog = FakeCatalog()
    valid = _coffee()
    invalid = ProposedItem(menu_item_id=1, item_name="Coffee", quantity=0, unit_price=Decimal("5"))

    with pytest.raises(InvalidOrderItemError) as exc_info:
        _engine(catalog=catalog).verify([valid, invalid])

    assert catalog.item_lookups == []
    assert exc_info.value.errors[0]["path"] == "items.1.quantity"


def test_empty_order_is_rejected() -> None:
    with pytest.raises(InvalidOrderItemError):
        _engine().verify([])


def test_tax_rate_is_read_for_every_order() -> None:
    tax = FixedTaxRate("0.10")
    engine = _engine(tax=tax)

    first = engine.verify([_coffee()])
    tax.rate = Decimal("0")
    second = engine.verify([_coffee()])

    assert first.tax.amount_cents == 115
    assert second.tax.amount_cents == 0
    assert tax.calls == 2


def test_catalog_price_in_another_currency_falls_back_to_client_price(caplog) -> None:
    catalog = FakeCatalog()
    catalog.items[1] = MenuItem(
        item_id=MenuItemId(1),
        name="House Blend",
        price=Money(amount_cents=450, currency="EUR"),
        is_available=True,
    )
    catalog.options[0] = ModifierOption(
        option_id=ModifierOptionId(5),
        name="Oat Milk",
        display_name="Oat Milk",
        price_adjustment=Money(amount_cents=70, currency="EUR"),
    )

    with caplog.at_level(logging.WARNING):
        pricing = _engine(catalog=catalog).verify([_coffee()])

    assert pricing.items[0].unit_price == Money(amount_cents=500, currency="USD")
    assert pricing.items[0].menu_item_id is None
    assert pricing.total.currency == "USD"
    assert pricing.subtotal.amount_cents == 1150
    assert [fallback.kind for fallback in pricing.fallbacks] == ["menu_item", "modifier"]
    messages = [record.getMessage() for record in caplog.records]
    assert messages.count("catalog_currency_mismatch") == 2
