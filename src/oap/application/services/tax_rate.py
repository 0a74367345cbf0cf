from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from oap.application.ports.repositories import SettingsRepository

logger = logging.getLogger(__name__)

TAX_RATE_SETTING = "tax_rate"
DEFAULT_TAX_RATE = Decimal("0.0825")


def parse_tax_rate(raw: str) -> Decimal:
    """Parse a stored tax rate, raising ``ValueError`` unless it lies in [0, 1)."""
    try:
        rate = Decimal(raw.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"tax rate is not a decimal number: {raw!r}") from exc
    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise ValueError(f"tax rate must be between 0 and 1: {raw!r}")
    return rate


class SettingsTaxRateProvider:
    """Reads the tax rate from settings on every call; staff may change it at any time."""

    def __init__(self, settings_repository: SettingsRepository) -> None:
        self._settings_repository = settings_repository

    def current_tax_rate(self) -> Decimal:
        raw = self._settings_repository.get(TAX_RATE_SETTING)
        if raw is None:
            return DEFAULT_TAX_RATE
        try:
            return parse_tax_rate(raw)
        except ValueError:
            logger.warning(
                "tax_rate_invalid",
                extra={"reason": "unparsable setting, using default", "value": raw},
            )
            return DEFAULT_TAX_RATE
