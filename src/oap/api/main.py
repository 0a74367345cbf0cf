from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from oap.api.error_handling import register_exception_handlers
from oap.api.middleware.request_id import RequestIDMiddleware
from oap.api.routes.admin import router as admin_router
from oap.api.routes.health import router as health_router
from oap.api.routes.kitchen import router as kitchen_router
from oap.api.routes.metrics import router as metrics_router
from oap.api.routes.orders import router as orders_router
from oap.api.routes.public import router as public_router
from oap.api.ws.manager import ConnectionManager
from oap.api.ws.publisher import WebSocketEventPublisher
from oap.api.ws.routes import router as ws_router
from oap.infrastructure.cache.rate_limiter import build_order_rate_limiter
from oap.infrastructure.cache.redis_client import redis_configured
from oap.infrastructure.messaging.redis_events import RedisEventPublisher, run_redis_fanout
from oap.infrastructure.notifications.email_notifier import EmailOrderNotifier
from oap.infrastructure.observability.logging_config import configure_logging
from oap.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("oap.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    if os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}:
        return ["*"]
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_path(request: Request) -> str:
    # Label by route template so order ids don't explode metric cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    publisher = app.state.event_publisher
    if isinstance(publisher, WebSocketEventPublisher):
        publisher.bind(asyncio.get_running_loop())

    fanout_task: asyncio.Task | None = None
    if redis_configured():
        fanout_task = asyncio.create_task(run_redis_fanout(app.state.ws_manager.broadcast))
    app.state.redis_fanout_task = fanout_task
    try:
        yield
    finally:
        if fanout_task is not None:
            fanout_task.cancel()
            with suppress(asyncio.CancelledError):
                await fanout_task
        if isinstance(publisher, WebSocketEventPublisher):
            publisher.unbind()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Order-Ahead Platform", version="0.1.0", lifespan=lifespan)
    app.state.ws_manager = ConnectionManager()
    if redis_configured():
        app.state.event_publisher = RedisEventPublisher()
    else:
        app.state.event_publisher = WebSocketEventPublisher(app.state.ws_manager)
    app.state.order_rate_limiter = build_order_rate_limiter()
    app.state.order_notifier = EmailOrderNotifier()

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    # Registered before the orders router so "/v1/orders/active" is not read as an order id.
    app.include_router(kitchen_router)
    app.include_router(orders_router)
    app.include_router(admin_router)
    app.include_router(public_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", "Retry-After"],
    )

    configure_otel(app)
    return app


app = create_app()
