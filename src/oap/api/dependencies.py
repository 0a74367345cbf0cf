from __future__ import annotations

import logging

from fastapi import Depends, Request
from opentelemetry import trace

from oap.api.middleware.request_id import get_request_id
from oap.api.security import require_staff
from oap.application.ports.rate_limiter import RateLimiter
from oap.application.use_cases.context import TraceContext

logger = logging.getLogger(__name__)


class RateLimitExceededError(Exception):
    def __init__(self, retry_after_seconds: int) -> None:
        super().__init__("too many orders, please try again later")
        self.retry_after_seconds = retry_after_seconds


def current_trace_id() -> str | None:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")


def trace_context() -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id())


def staff_trace_context(actor: str = Depends(require_staff)) -> TraceContext:
    return TraceContext(trace_id=current_trace_id(), request_id=get_request_id(), actor=actor)


def _client_key(request: Request) -> str:
    return request.client.host if request.client is not None else "unknown"


def enforce_order_rate_limit(request: Request) -> None:
    limiter: RateLimiter = request.app.state.order_rate_limiter
    client_ip = _client_key(request)
    decision = limiter.hit(client_ip)
    if not decision.allowed:
        logger.warning(
            "order_rate_limited",
            extra={"client_ip": client_ip, "reason": f"limit={decision.limit}"},
        )
        raise RateLimitExceededError(retry_after_seconds=decision.retry_after_seconds)
