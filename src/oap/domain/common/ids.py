from __future__ import annotations

from typing import NewType

OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
MenuItemId = NewType("MenuItemId", int)
ModifierOptionId = NewType("ModifierOptionId", int)
