"""Seed a demo catalog and default settings.

Run after ``alembic upgrade head``: ``python -m oap.tools.seed``.
Rows are merged by primary key, so running it twice is harmless.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from oap.application.services.tax_rate import DEFAULT_TAX_RATE, TAX_RATE_SETTING
from oap.domain.common.money import Money
from oap.infrastructure.clock import cafe_currency
from oap.infrastructure.db.models.catalog import MenuItemModel, ModifierOptionModel
from oap.infrastructure.db.models.setting import SettingModel
from oap.infrastructure.db.session import get_engine

MENU_ITEMS: list[tuple[int, str, str, str, str]] = [
    (1, "House Blend", "Coffee & Espresso", "5.00", ""),
    (2, "Cappuccino", "Coffee & Espresso", "5.00", ""),
    (3, "Mocha", "Coffee & Espresso", "6.00", "Milk chocolate, espresso, and steamed milk. 16 oz."),
    (4, "Caramel Macchiato", "Coffee & Espresso", "6.00", "Espresso with vanilla syrup."),
    (5, "Breakfast Burrito", "Breakfast", "10.00", "Bacon, sausage, scrambled eggs and cheese."),
    (6, "Bagel with Cream Cheese", "Breakfast", "7.00", "Served with jam."),
    (7, "Sun Burn", "Smoothies", "6.95", "Mango & passion fruit with strawberry bottom."),
    (8, "Turkey Grill", "Sandwiches & Paninis", "14.00", "Turkey, melted swiss, avocado."),
    (9, "Lemonade", "Tea & Lemonade", "4.00", "20 oz."),
    (10, "Twisted Lemonade", "Tea & Lemonade", "5.00", "Choice of flavor. 20 oz."),
]

MODIFIER_OPTIONS: list[tuple[int, str, str]] = [
    (1, "Extra Shot", "1.00"),
    (2, "Whipped Cream", "0.50"),
    (3, "Vanilla Syrup", "0.75"),
    (4, "Caramel Syrup", "0.75"),
    (5, "Oat Milk", "0.75"),
    (6, "Almond Milk", "0.75"),
    (7, "Whey Protein", "1.50"),
    (8, "Bacon", "2.00"),
    (9, "Avocado", "1.50"),
    (10, "Extra Cheese", "1.00"),
    (11, "Strawberry", "0"),
    (12, "Mango", "0"),
]


def _cents(amount: str, currency: str) -> int:
    return Money.from_decimal(Decimal(amount), currency).amount_cents


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    required_tables = {"menu_items", "modifier_options", "settings"}
    if not required_tables.issubset(set(inspect(engine).get_table_names())):
        print("no schema yet")
        return

    currency = cafe_currency()
    with Session(engine) as session, session.begin():
        for item_id, name, category, price, description in MENU_ITEMS:
            session.merge(
                MenuItemModel(
                    id=item_id,
                    name=name,
                    category=category,
                    description=description or None,
                    price_cents=_cents(price, currency),
                    currency=currency,
                    is_available=True,
                )
            )
        for option_id, name, adjustment in MODIFIER_OPTIONS:
            session.merge(
                ModifierOptionModel(
                    id=option_id,
                    name=name,
                    display_name=name,
                    price_adjustment_cents=_cents(adjustment, currency),
                    currency=currency,
                    is_available=True,
                )
            )
        existing = session.execute(
            select(SettingModel).where(SettingModel.key == TAX_RATE_SETTING)
        ).scalar_one_or_none()
        if existing is None:
            session.add(SettingModel(key=TAX_RATE_SETTING, value=str(DEFAULT_TAX_RATE)))

    print("seed complete")


if __name__ == "__main__":
    main()
