from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class TaxRateProvider(Protocol):
    def current_tax_rate(self) -> Decimal: ...
