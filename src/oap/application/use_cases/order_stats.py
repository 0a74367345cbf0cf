from __future__ import annotations

from datetime import date, datetime

from oap.application.dto.responses import MoneyResponse, OrderStatsResponse
from oap.application.ports.repositories import OrderRepository


class GetOrderStats:
    def __init__(self, order_repository: OrderRepository, currency: str) -> None:
        self._order_repository = order_repository
        self._currency = currency

    def execute(self, day: date, start: datetime, end: datetime) -> OrderStatsResponse:
        """Orders created in ``[start, end)``; revenue leaves cancelled orders out."""
        stats = self._order_repository.summarize_between(start=start, end=end)
        return OrderStatsResponse(
            date=day,
            orders=stats.orders_total,
            revenue=MoneyResponse(amountCents=stats.revenue_cents, currency=self._currency),
        )
