"""Import every model so ``Base.metadata`` describes the full schema."""

from __future__ import annotations

from oap.infrastructure.db.models.base import Base
from oap.infrastructure.db.models.catalog import MenuItemModel, ModifierOptionModel
from oap.infrastructure.db.models.order import OrderItemModel, OrderItemModifierModel, OrderModel
from oap.infrastructure.db.models.pickup_counter import PickupCounterModel
from oap.infrastructure.db.models.setting import SettingModel

metadata = Base.metadata

__all__ = [
    "MenuItemModel",
    "ModifierOptionModel",
    "OrderItemModel",
    "OrderItemModifierModel",
    "OrderModel",
    "PickupCounterModel",
    "SettingModel",
    "metadata",
]
