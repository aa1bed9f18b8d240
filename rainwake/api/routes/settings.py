"""User settings API routes."""

from fastapi import APIRouter

from rainwake.api.deps import AlarmSchedulerDep, PreferencesDep, SettingsServiceDep
from rainwake.schemas.common import APIResponse
from rainwake.schemas.settings import SettingsResponse, SettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=APIResponse[SettingsResponse])
async def get_user_settings(
    preferences: PreferencesDep,
    scheduler: AlarmSchedulerDep,
) -> APIResponse[SettingsResponse]:
    """Get user settings."""
    settings = await preferences.get_settings()
    return APIResponse(data=SettingsResponse.from_settings(settings, scheduler.can_schedule_exact()))


@router.put("", response_model=APIResponse[SettingsResponse])
async def update_user_settings(
    data: SettingsUpdate,
    service: SettingsServiceDep,
    scheduler: AlarmSchedulerDep,
) -> APIResponse[SettingsResponse]:
    """Update user settings and re-arm schedules."""
    settings = await service.update(data)
    return APIResponse(data=SettingsResponse.from_settings(settings, scheduler.can_schedule_exact()))
