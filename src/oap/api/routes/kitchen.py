from __future__ import annotations

from fastapi import APIRouter, Depends

from oap.api.dependencies import staff_trace_context
from oap.api.routes.factories import list_active_orders_use_case, update_order_status_use_case
from oap.api.security import require_staff
from oap.application.dto.requests import UpdateOrderStatusRequest
from oap.application.dto.responses import ActiveOrdersResponse, OrderResponse
from oap.application.use_cases.active_orders import ListActiveOrders
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.update_order_status import UpdateOrderStatus
from oap.domain.common.ids import OrderId

router = APIRouter()


@router.get(
    "/v1/orders/active",
    response_model=ActiveOrdersResponse,
    dependencies=[Depends(require_staff)],
)
def list_active_orders(
    use_case: ListActiveOrders = Depends(list_active_orders_use_case),
) -> ActiveOrdersResponse:
    return use_case.execute()


@router.patch("/v1/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    trace_ctx: TraceContext = Depends(staff_trace_context),
    use_case: UpdateOrderStatus = Depends(update_order_status_use_case),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        new_status=request_dto.status,
        trace_ctx=trace_ctx,
    )
