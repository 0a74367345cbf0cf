"""Fixed-window request limiting for order creation.

Redis backs the shared limit when configured; otherwise each process keeps
its own counters. A Redis outage lets requests through rather than blocking
customers from ordering.
"""

from __future__ import annotations

import logging
import math
import os
import threading
import time
from collections.abc import Callable

from oap.application.ports.rate_limiter import RateLimitDecision, RateLimiter
from oap.infrastructure.cache.redis_client import get_redis_client, redis_configured

logger = logging.getLogger(__name__)

DEFAULT_ORDER_RATE_LIMIT_MAX = 5
DEFAULT_ORDER_RATE_LIMIT_WINDOW_SECONDS = 900


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("invalid_env_value", extra={"reason": f"{name} is not an integer"})
        return default
    return value if value > 0 else default


class InMemoryRateLimiter(RateLimiter):
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            started_at, count = self._windows.get(key, (now, 0))
            if now - started_at >= self._window_seconds:
                started_at, count = now, 0
            count += 1
            self._windows[key] = (started_at, count)
            self._evict_expired(now)

        retry_after = max(1, math.ceil(started_at + self._window_seconds - now))
        return RateLimitDecision(
            allowed=count <= self._max_requests,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - count),
            retry_after_seconds=retry_after,
        )

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, (started_at, _) in self._windows.items()
            if now - started_at >= self._window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RedisRateLimiter(RateLimiter):
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        prefix: str = "ratelimit:orders",
        timeout_seconds: float = 0.5,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._prefix = prefix
        self._timeout_seconds = timeout_seconds

    def hit(self, key: str) -> RateLimitDecision:
        redis_key = f"{self._prefix}:{key}"
        try:
            client = get_redis_client(timeout_seconds=self._timeout_seconds)
            current = int(client.incr(redis_key))
            if current == 1:
                client.expire(redis_key, self._window_seconds)
            ttl = int(client.ttl(redis_key))
        except Exception:
            logger.warning("rate_limit_unavailable", extra={"reason": "redis error, allowing"})
            return RateLimitDecision(
                allowed=True,
                limit=self._max_requests,
                remaining=self._max_requests,
                retry_after_seconds=0,
            )

        return RateLimitDecision(
            allowed=current <= self._max_requests,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - current),
            retry_after_seconds=ttl if ttl > 0 else self._window_seconds,
        )


def build_order_rate_limiter() -> RateLimiter:
    max_requests = _env_int("ORDER_RATE_LIMIT_MAX", DEFAULT_ORDER_RATE_LIMIT_MAX)
    window_seconds = _env_int(
        "ORDER_RATE_LIMIT_WINDOW_SECONDS",
        DEFAULT_ORDER_RATE_LIMIT_WINDOW_SECONDS,
    )
    if redis_configured():
        return RedisRateLimiter(max_requests=max_requests, window_seconds=window_seconds)
    return InMemoryRateLimiter(max_requests=max_requests, window_seconds=window_seconds)
