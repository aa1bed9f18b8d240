"""Settings and status API schemas."""

from datetime import datetime, time

from pydantic import BaseModel, Field

from rainwake.models.settings import ManualLocation, UserSettings
from rainwake.models.status import AppStatus, StatusInfo


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged."""

    notification_time: time | None = Field(default=None, description="Local notification time of day")
    pop_threshold: int | None = Field(default=None, description="Threshold in percent, clamped to 0-80")
    is_enabled: bool | None = None
    manual_location: ManualLocation | None = None
    clear_manual_location: bool = Field(default=False, description="Remove the manual location")


class SettingsResponse(BaseModel):
    notification_time: time
    pop_threshold: int
    is_enabled: bool
    manual_location: ManualLocation | None = None
    pop_check_start_hour: int
    pop_check_end_hour: int
    can_schedule_exact: bool

    @classmethod
    def from_settings(cls, settings: UserSettings, can_schedule_exact: bool) -> "SettingsResponse":
        return cls(
            notification_time=settings.notification_time,
            pop_threshold=settings.pop_threshold,
            is_enabled=settings.is_enabled,
            manual_location=settings.manual_location,
            pop_check_start_hour=settings.pop_check_start_hour,
            pop_check_end_hour=settings.pop_check_end_hour,
            can_schedule_exact=can_schedule_exact,
        )


class StatusResponse(BaseModel):
    status: AppStatus
    is_error: bool
    requires_action: bool
    user_message: str
    detail_message: str | None = None
    scheduled_time: time | None = None
    pop: int | None = None
    threshold: int | None = None
    location_name: str | None = None
    last_update_time: datetime | None = None
    cache_age: str | None = None

    @classmethod
    def from_status(cls, info: StatusInfo) -> "StatusResponse":
        return cls(
            status=info.status,
            is_error=info.status.is_error,
            requires_action=info.status.requires_action,
            user_message=info.user_message,
            detail_message=info.detail_message,
            scheduled_time=info.scheduled_time,
            pop=info.pop,
            threshold=info.threshold,
            location_name=info.location_name,
            last_update_time=info.last_update_time,
            cache_age=info.cache_age,
        )


class RefreshResponse(BaseModel):
    message: str
    is_scheduled: bool
