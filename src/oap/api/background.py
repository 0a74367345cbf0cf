from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import BackgroundTasks

from oap.application.metrics.order_lifecycle import record_notification_failure
from oap.application.ports.notifier import OrderNotifier
from oap.domain.order.entities import Order

logger = logging.getLogger(__name__)


def _deliver(kind: str, send: Callable[[Order], None], order: Order) -> None:
    try:
        send(order)
    except Exception:
        record_notification_failure(kind)
        logger.exception(
            "notification_failed",
            extra={"order_id": str(order.order_id), "kind": kind},
        )


class BackgroundTaskNotifier(OrderNotifier):
    """Defers delivery until after the response has been sent."""

    def __init__(self, background_tasks: BackgroundTasks, delegate: OrderNotifier) -> None:
        self._background_tasks = background_tasks
        self._delegate = delegate

    def order_confirmed(self, order: Order) -> None:
        self._background_tasks.add_task(
            _deliver, "order_confirmed", self._delegate.order_confirmed, order
        )

    def order_ready(self, order: Order) -> None:
        self._background_tasks.add_task(_deliver, "order_ready", self._delegate.order_ready, order)
