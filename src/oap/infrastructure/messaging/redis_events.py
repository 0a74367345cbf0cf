"""Cross-process order event delivery over Redis pub/sub.

Every API process publishes envelopes to ``events:<topic>`` and runs one
fan-out task that relays everything it hears on ``events:*`` to its own
WebSocket clients, so a kitchen screen sees orders placed through any
process.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from oap.application.ports.publisher import EventPublisher
from oap.infrastructure.cache.redis_client import (
    get_redis_client,
    open_async_client,
    redis_configured,
)

logger = logging.getLogger(__name__)

EVENTS_PATTERN = "events:*"
_MAX_BACKOFF_SECONDS = 5.0


class RedisEventPublisher(EventPublisher):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        receivers = get_redis_client(timeout_seconds=self._timeout_seconds).publish(
            channel,
            message,
        )
        logger.debug("order_event_published", extra={"channel": channel, "receivers": receivers})


async def run_redis_fanout(broadcast: Callable[[str], Awaitable[None]]) -> None:
    """Relay published envelopes to ``broadcast`` until cancelled, reconnecting on errors."""
    if not redis_configured():
        logger.warning("redis_fanout_not_started", extra={"reason": "REDIS_URL missing"})
        return

    backoff_seconds = 1.0
    while True:
        client = open_async_client()
        pubsub = client.pubsub()
        try:
            await pubsub.psubscribe(EVENTS_PATTERN)
            logger.info("redis_fanout_subscribed", extra={"channel": EVENTS_PATTERN})
            backoff_seconds = 1.0

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is None:
                    await asyncio.sleep(0.05)
                    continue
                payload = message.get("data")
                if isinstance(payload, str) and payload:
                    await broadcast(payload)
        except asyncio.CancelledError:
            logger.info("redis_fanout_cancelled")
            raise
        except Exception:
            logger.exception("redis_fanout_error", extra={"backoff_seconds": backoff_seconds})
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, _MAX_BACKOFF_SECONDS)
        finally:
            await pubsub.aclose()
            await client.aclose()
