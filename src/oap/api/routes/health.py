from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from oap.infrastructure.cache.redis_client import ping_redis, redis_configured
from oap.infrastructure.db.session import ping_database

router = APIRouter()


def _fanout_running(request: Request) -> bool:
    task = getattr(request.app.state, "redis_fanout_task", None)
    return task is not None and not task.done()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(request: Request, response: Response) -> dict[str, object]:
    """Database always; redis and the event fan-out only when REDIS_URL is set."""
    checks = {"database": ping_database(timeout_seconds=1.0)}
    if redis_configured():
        checks["redis"] = ping_redis(timeout_seconds=1.0)
        checks["event_fanout"] = _fanout_running(request)

    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
