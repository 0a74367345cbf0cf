from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from oap.domain.catalog.entities import MenuItem, ModifierOption
from oap.domain.common.ids import MenuItemId, OrderId
from oap.domain.order.entities import Order, OrderStatus


class CatalogRepository(Protocol):
    def get_menu_item(self, item_id: MenuItemId) -> MenuItem | None: ...

    def find_modifier_option(self, name: str) -> ModifierOption | None: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> Order: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def list_active(self) -> list[Order]: ...

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
        updated_at: datetime,
    ) -> Order: ...

    def summarize_between(self, start: datetime, end: datetime) -> OrderStatsData: ...


class PickupSequencer(Protocol):
    def next_pickup_number(self) -> int: ...


class SettingsRepository(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def list_all(self) -> dict[str, str]: ...


class PersistenceError(Exception):
    pass


class OptimisticConcurrencyError(Exception):
    pass


@dataclass(frozen=True)
class OrderStatsData:
    orders_total: int
    revenue_cents: int
