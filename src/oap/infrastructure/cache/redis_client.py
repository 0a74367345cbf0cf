"""Redis connections for rate limiting, event fan-out and readiness checks.

Redis is optional. Without ``REDIS_URL`` the API keeps rate limits and
order broadcasts inside the process.
"""

from __future__ import annotations

import os
from functools import lru_cache

import redis
from redis import asyncio as redis_asyncio


def configured_redis_url() -> str | None:
    url = os.getenv("REDIS_URL", "").strip()
    return url or None


def redis_configured() -> bool:
    return configured_redis_url() is not None


def _require_url() -> str:
    url = configured_redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(redis_url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        decode_responses=True,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    return _build_client(_require_url(), timeout_seconds)


def open_async_client() -> redis_asyncio.Redis:
    """Fresh asyncio client for a long-lived subscription; the caller closes it."""
    return redis_asyncio.from_url(_require_url(), decode_responses=True)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except redis.RedisError:
        return False
