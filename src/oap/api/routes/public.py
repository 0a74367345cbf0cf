from __future__ import annotations

from fastapi import APIRouter, Depends

from oap.api.routes.factories import announcement_use_case, public_settings_use_case
from oap.application.dto.responses import AnnouncementResponse, PublicSettingsResponse
from oap.application.use_cases.settings import GetAnnouncement, GetPublicSettings

router = APIRouter(prefix="/v1/public")


@router.get("/settings", response_model=PublicSettingsResponse)
def public_settings(
    use_case: GetPublicSettings = Depends(public_settings_use_case),
) -> PublicSettingsResponse:
    return use_case.execute()


@router.get("/announcement", response_model=AnnouncementResponse)
def announcement(
    use_case: GetAnnouncement = Depends(announcement_use_case),
) -> AnnouncementResponse:
    return use_case.execute()
