from __future__ import annotations

from dataclasses import dataclass

from oap.domain.common.ids import MenuItemId, ModifierOptionId
from oap.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price: Money
    is_available: bool
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")


@dataclass(frozen=True)
class ModifierOption:
    option_id: ModifierOptionId
    name: str
    display_name: str
    price_adjustment: Money
    is_available: bool = True

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def matches(self, name: str) -> bool:
        return name in (self.name, self.display_name)
