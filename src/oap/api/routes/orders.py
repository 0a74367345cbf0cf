from __future__ import annotations

from fastapi import APIRouter, Depends, status

from oap.api.dependencies import enforce_order_rate_limit, trace_context
from oap.api.routes.factories import get_order_use_case, place_order_use_case
from oap.application.dto.requests import PlaceOrderRequest
from oap.application.dto.responses import OrderResponse, PlaceOrderResponse
from oap.application.use_cases.context import TraceContext
from oap.application.use_cases.get_order import GetOrder
from oap.application.use_cases.place_order import PlaceOrder
from oap.domain.common.ids import OrderId

router = APIRouter()


@router.post(
    "/v1/orders",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_order_rate_limit)],
)
def place_order(
    request_dto: PlaceOrderRequest,
    use_case: PlaceOrder = Depends(place_order_use_case),
    trace_ctx: TraceContext = Depends(trace_context),
) -> PlaceOrderResponse:
    return use_case.execute(request_dto=request_dto, trace_ctx=trace_ctx)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, use_case: GetOrder = Depends(get_order_use_case)) -> OrderResponse:
    return use_case.execute(order_id=OrderId(order_id))
