"""Per-request wiring of use cases to their SQLAlchemy and app-state adapters."""

from __future__ import annotations

from fastapi import BackgroundTasks, Request

from oap.api.background import BackgroundTaskNotifier
from oap.application.services.price_verification import PriceVerificationEngine
from oap.application.services.tax_rate import SettingsTaxRateProvider
from oap.application.use_cases.active_orders import ListActiveOrders
from oap.application.use_cases.get_order import GetOrder
from oap.application.use_cases.order_stats import GetOrderStats
from oap.application.use_cases.place_order import PlaceOrder
from oap.application.use_cases.settings import (
    GetAnnouncement,
    GetPublicSettings,
    ListSettings,
    UpdateSetting,
)
from oap.application.use_cases.update_order_status import UpdateOrderStatus
from oap.infrastructure.clock import cafe_currency
from oap.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogRepository
from oap.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from oap.infrastructure.db.repositories.settings_repo import SqlAlchemySettingsRepository


def _notifier(request: Request, background_tasks: BackgroundTasks) -> BackgroundTaskNotifier:
    return BackgroundTaskNotifier(
        background_tasks=background_tasks,
        delegate=request.app.state.order_notifier,
    )


def place_order_use_case(request: Request, background_tasks: BackgroundTasks) -> PlaceOrder:
    return PlaceOrder(
        price_verification=PriceVerificationEngine(
            catalog=SqlAlchemyCatalogRepository(),
            tax_rate_provider=SettingsTaxRateProvider(SqlAlchemySettingsRepository()),
            currency=cafe_currency(),
        ),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=request.app.state.event_publisher,
        notifier=_notifier(request, background_tasks),
    )


def update_order_status_use_case(
    request: Request,
    background_tasks: BackgroundTasks,
) -> UpdateOrderStatus:
    return UpdateOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=request.app.state.event_publisher,
        notifier=_notifier(request, background_tasks),
    )


def get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


def list_active_orders_use_case() -> ListActiveOrders:
    return ListActiveOrders(order_repository=SqlAlchemyOrderRepository())


def order_stats_use_case() -> GetOrderStats:
    return GetOrderStats(order_repository=SqlAlchemyOrderRepository(), currency=cafe_currency())


def list_settings_use_case() -> ListSettings:
    return ListSettings(settings_repository=SqlAlchemySettingsRepository())


def update_setting_use_case() -> UpdateSetting:
    return UpdateSetting(settings_repository=SqlAlchemySettingsRepository())


def public_settings_use_case() -> GetPublicSettings:
    return GetPublicSettings(
        tax_rate_provider=SettingsTaxRateProvider(SqlAlchemySettingsRepository())
    )


def announcement_use_case() -> GetAnnouncement:
    return GetAnnouncement(settings_repository=SqlAlchemySettingsRepository())
