"""Application status domain models."""

from datetime import datetime, time
from enum import Enum

from pydantic import BaseModel


class AppStatus(str, Enum):
    """Current application status, stored by code for polling clients."""

    SCHEDULED_EXACT = "SCHED_EXACT"
    SCHEDULED_APPROXIMATE = "SCHED_APPROX"
    NO_RAIN_EXPECTED = "NO_RAIN"

    FETCH_FAILED_NETWORK = "ERR_NETWORK"
    FETCH_FAILED_LOCATION = "ERR_LOCATION"
    FETCH_FAILED_API = "ERR_API"
    USING_CACHED_DATA = "CACHED"

    PERMISSION_MISSING_NOTIFICATION = "PERM_NOTIF"
    PERMISSION_MISSING_LOCATION = "PERM_LOC"
    EXACT_ALARM_UNAVAILABLE = "WARN_INEXACT"

    INITIAL = "INIT"
    CHECKING = "CHECKING"
    UNKNOWN = "UNKNOWN"

    @property
    def code(self) -> str:
        return self.value

    @property
    def is_error(self) -> bool:
        return self in _ERROR_STATUSES

    @property
    def requires_action(self) -> bool:
        return self in _ACTION_STATUSES

    @classmethod
    def from_code(cls, code: str | None) -> "AppStatus":
        for status in cls:
            if status.value == code:
                return status
        return cls.UNKNOWN


_ERROR_STATUSES = frozenset({
    AppStatus.FETCH_FAILED_NETWORK,
    AppStatus.FETCH_FAILED_LOCATION,
    AppStatus.FETCH_FAILED_API,
})

_ACTION_STATUSES = frozenset({
    AppStatus.FETCH_FAILED_LOCATION,
    AppStatus.PERMISSION_MISSING_NOTIFICATION,
    AppStatus.PERMISSION_MISSING_LOCATION,
    AppStatus.INITIAL,
})


def format_time_of_day(value: time | None) -> str:
    """Format as 'h:mm AM/PM'; unset shows the default 7:30 AM."""
    if value is None:
        return "7:30 AM"
    suffix = "AM" if value.hour < 12 else "PM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {suffix}"


class StatusInfo(BaseModel):
    """Status snapshot with everything a client needs to display."""

    status: AppStatus
    scheduled_time: time | None = None
    pop: int | None = None
    threshold: int | None = None
    location_name: str | None = None
    last_update_time: datetime | None = None
    next_retry_time: datetime | None = None
    cache_age: str | None = None
    error_message: str | None = None

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.status]

    @property
    def detail_message(self) -> str | None:
        status = self.status
        if status == AppStatus.SCHEDULED_EXACT:
            return f"Notification at {format_time_of_day(self.scheduled_time)} (precipitation {self.pop or 0}%)"
        if status == AppStatus.SCHEDULED_APPROXIMATE:
            return f"Notification around {format_time_of_day(self.scheduled_time)} (may be off by up to 15 min)"
        if status == AppStatus.NO_RAIN_EXPECTED:
            threshold = self.threshold if self.threshold is not None else 40
            return f"Precipitation {self.pop or 0}% is below the threshold ({threshold}%)"
        if status == AppStatus.FETCH_FAILED_NETWORK:
            cache_info = f" Last data: {self.cache_age}" if self.cache_age else ""
            return f"Check the network connection.{cache_info}"
        if status == AppStatus.FETCH_FAILED_LOCATION:
            return "Check the location permission or set a location manually"
        if status == AppStatus.FETCH_FAILED_API:
            if self.next_retry_time is not None:
                return "Will retry shortly"
            return "Please try again later"
        if status == AppStatus.USING_CACHED_DATA:
            return f"Using data from {self.cache_age} ago" if self.cache_age else None
        if status == AppStatus.PERMISSION_MISSING_NOTIFICATION:
            return "Allow notifications to receive alerts"
        if status == AppStatus.PERMISSION_MISSING_LOCATION:
            return "Allow location access or set a location manually"
        if status == AppStatus.EXACT_ALARM_UNAVAILABLE:
            return "Allow exact alarms in the system settings for on-time notifications"
        if status == AppStatus.INITIAL:
            return "Set a notification time and precipitation threshold"
        if status == AppStatus.UNKNOWN:
            return self.error_message
        return None

    @classmethod
    def initial(cls) -> "StatusInfo":
        return cls(status=AppStatus.INITIAL)

    @classmethod
    def checking(cls) -> "StatusInfo":
        return cls(status=AppStatus.CHECKING)

    @classmethod
    def scheduled(
        cls,
        is_exact: bool,
        scheduled_time: time,
        pop: int,
        location_name: str | None,
        last_update: datetime,
    ) -> "StatusInfo":
        return cls(
            status=AppStatus.SCHEDULED_EXACT if is_exact else AppStatus.SCHEDULED_APPROXIMATE,
            scheduled_time=scheduled_time,
            pop=pop,
            location_name=location_name,
            last_update_time=last_update,
        )

    @classmethod
    def no_rain(
        cls,
        pop: int,
        threshold: int,
        location_name: str | None,
        last_update: datetime,
    ) -> "StatusInfo":
        return cls(
            status=AppStatus.NO_RAIN_EXPECTED,
            pop=pop,
            threshold=threshold,
            location_name=location_name,
            last_update_time=last_update,
        )

    @classmethod
    def error(
        cls,
        status: AppStatus,
        message: str | None = None,
        cache_age: str | None = None,
    ) -> "StatusInfo":
        return cls(status=status, error_message=message, cache_age=cache_age)


_USER_MESSAGES = {
    AppStatus.SCHEDULED_EXACT: "Notification scheduled",
    AppStatus.SCHEDULED_APPROXIMATE: "Notification scheduled",
    AppStatus.NO_RAIN_EXPECTED: "No rain expected",
    AppStatus.FETCH_FAILED_NETWORK: "Could not fetch the weather",
    AppStatus.FETCH_FAILED_LOCATION: "Could not determine the location",
    AppStatus.FETCH_FAILED_API: "Weather service error",
    AppStatus.USING_CACHED_DATA: "Using cached data",
    AppStatus.PERMISSION_MISSING_NOTIFICATION: "Notification permission needed",
    AppStatus.PERMISSION_MISSING_LOCATION: "Location setup needed",
    AppStatus.EXACT_ALARM_UNAVAILABLE: "On-time notifications unavailable",
    AppStatus.INITIAL: "Finish the setup",
    AppStatus.CHECKING: "Checking the weather...",
    AppStatus.UNKNOWN: "Status needs attention",
}
