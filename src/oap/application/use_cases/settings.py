from __future__ import annotations

import logging

from oap.application.dto.responses import (
    AnnouncementResponse,
    PublicSettingsResponse,
    SettingResponse,
    SettingsResponse,
)
from oap.application.ports.repositories import SettingsRepository
from oap.application.services.sanitize import sanitize_text
from oap.application.ports.pricing import TaxRateProvider
from oap.application.services.tax_rate import TAX_RATE_SETTING, parse_tax_rate
from oap.application.use_cases.context import TraceContext

logger = logging.getLogger(__name__)

_SETTING_KEY_MAX_LENGTH = 64
ANNOUNCEMENT_ENABLED_SETTING = "announcement_enabled"
ANNOUNCEMENT_TEXT_SETTING = "announcement_text"


class InvalidSettingError(Exception):
    pass


class ListSettings:
    def __init__(self, settings_repository: SettingsRepository) -> None:
        self._settings_repository = settings_repository

    def execute(self) -> SettingsResponse:
        return SettingsResponse(settings=self._settings_repository.list_all())


class UpdateSetting:
    def __init__(self, settings_repository: SettingsRepository) -> None:
        self._settings_repository = settings_repository

    def execute(self, key: str, value: str, trace_ctx: TraceContext) -> SettingResponse:
        if not key or len(key) > _SETTING_KEY_MAX_LENGTH or not key.replace("_", "").isalnum():
            raise InvalidSettingError(f"invalid setting key: {key!r}")

        sanitized = sanitize_text(value) or ""
        if key == TAX_RATE_SETTING:
            try:
                sanitized = str(parse_tax_rate(sanitized))
            except ValueError as exc:
                raise InvalidSettingError(str(exc)) from exc

        self._settings_repository.set(key, sanitized)
        logger.info("setting_updated", extra={"key": key, **trace_ctx.log_extra()})
        return SettingResponse(key=key, value=sanitized)


class GetPublicSettings:
    """What checkout needs before it can show a subtotal, tax and total."""

    def __init__(self, tax_rate_provider: TaxRateProvider) -> None:
        self._tax_rate_provider = tax_rate_provider

    def execute(self) -> PublicSettingsResponse:
        return PublicSettingsResponse(taxRate=str(self._tax_rate_provider.current_tax_rate()))


class GetAnnouncement:
    def __init__(self, settings_repository: SettingsRepository) -> None:
        self._settings_repository = settings_repository

    def execute(self) -> AnnouncementResponse:
        enabled = self._settings_repository.get(ANNOUNCEMENT_ENABLED_SETTING) == "true"
        text = self._settings_repository.get(ANNOUNCEMENT_TEXT_SETTING) or ""
        return AnnouncementResponse(enabled=enabled, text=text if enabled else "")
