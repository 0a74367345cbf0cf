from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from oap.api.dependencies import staff_trace_context
from oap.api.routes.factories import (
    list_settings_use_case,
    order_stats_use_case,
    update_setting_use_case,
)
from oap.api.security import require_staff
from oap.application.dto.requests import UpdateSettingRequest
from oap.application.dto.responses import OrderStatsResponse, SettingResponse, SettingsResponse
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.order_stats import GetOrderStats
from oap.application.use_cases.settings import ListSettings, UpdateSetting
from oap.infrastructure.clock import cafe_today, day_bounds_utc

router = APIRouter(prefix="/v1/admin", dependencies=[Depends(require_staff)])


@router.get("/stats", response_model=OrderStatsResponse)
def order_stats(
    day: date | None = Query(default=None, alias="date"),
    use_case: GetOrderStats = Depends(order_stats_use_case),
) -> OrderStatsResponse:
    stats_day = day or cafe_today()
    start, end = day_bounds_utc(stats_day)
    return use_case.execute(day=stats_day, start=start, end=end)


@router.get("/settings", response_model=SettingsResponse)
def list_settings(use_case: ListSettings = Depends(list_settings_use_case)) -> SettingsResponse:
    return use_case.execute()


@router.patch("/settings/{key}", response_model=SettingResponse)
def update_setting(
    key: str,
    request_dto: UpdateSettingRequest,
    trace_ctx: TraceContext = Depends(staff_trace_context),
    use_case: UpdateSetting = Depends(update_setting_use_case),
) -> SettingResponse:
    return use_case.execute(key=key, value=request_dto.value, trace_ctx=trace_ctx)
