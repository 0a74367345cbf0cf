from __future__ import annotations

from sqlalchemy import Engine, or_, select
from sqlalchemy.orm import Session

from oap.application.ports.repositories import CatalogRepository
from oap.domain.catalog.entities import MenuItem, ModifierOption
from oap.domain.common.ids import MenuItemId, ModifierOptionId
from oap.domain.common.money import Money
from oap.infrastructure.db.models.catalog import MenuItemModel, ModifierOptionModel
from oap.infrastructure.db.repositories.errors import translate_errors
from oap.infrastructure.db.session import get_engine


class SqlAlchemyCatalogRepository(CatalogRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_menu_item(self, item_id: MenuItemId) -> MenuItem | None:
        with translate_errors("get_menu_item"), Session(self._engine) as session:
            model = session.get(MenuItemModel, int(item_id))
            if model is None:
                return None
            return MenuItem(
                item_id=MenuItemId(model.id),
                name=model.name,
                description=model.description,
                price=Money(amount_cents=model.price_cents, currency=model.currency),
                is_available=model.is_available,
            )

    def find_modifier_option(self, name: str) -> ModifierOption | None:
        statement = (
            select(ModifierOptionModel)
            .where(or_(ModifierOptionModel.name == name, ModifierOptionModel.display_name == name))
            .order_by(ModifierOptionModel.id)
            .limit(1)
        )
        with translate_errors("find_modifier_option"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return ModifierOption(
                option_id=ModifierOptionId(model.id),
                name=model.name,
                display_name=model.display_name,
                price_adjustment=Money(
                    amount_cents=model.price_adjustment_cents,
                    currency=model.currency,
                ),
                is_available=model.is_available,
            )
