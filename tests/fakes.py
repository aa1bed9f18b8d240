"""Hand-written fakes for injected collaborators."""

from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from rainwake.core.clock import Clock
from rainwake.location.provider import LocationProvider
from rainwake.models.forecast import Location, PrecipitationType
from rainwake.notification.renderer import NotificationMessage, NotificationRenderer
from rainwake.scheduler.capability import AlarmCapability
from rainwake.weather.client import HourlyData, WeatherResponse

SEOUL = ZoneInfo("Asia/Seoul")


class FrozenClock(Clock):
    """Clock standing still at a chosen local time until advanced."""

    def __init__(self, local: datetime, tz=SEOUL):
        super().__init__(tz)
        self._now = local.replace(tzinfo=tz).astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set_local(self, local: datetime) -> None:
        self._now = local.replace(tzinfo=self.tz).astimezone(timezone.utc)

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)


class FakeAlarmCapability(AlarmCapability):
    """Records arm/cancel calls instead of arming anything."""

    def __init__(self, exact_allowed: bool = True):
        self.exact_allowed = exact_allowed
        self.exact_error: Exception | None = None
        self.inexact_error: Exception | None = None
        self.armed: dict[str, tuple[int, bool, dict[str, Any]]] = {}
        self.calls: list[tuple] = []

    def can_schedule_exact(self) -> bool:
        return self.exact_allowed

    def arm_exact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        self.calls.append(("arm_exact", key, when_ms))
        if self.exact_error is not None:
            raise self.exact_error
        self.armed[key] = (when_ms, True, payload)

    def arm_inexact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        self.calls.append(("arm_inexact", key, when_ms))
        if self.inexact_error is not None:
            raise self.inexact_error
        self.armed[key] = (when_ms, False, payload)

    def cancel(self, key: str) -> None:
        self.calls.append(("cancel", key))
        self.armed.pop(key, None)


class FakeLocationProvider(LocationProvider):
    def __init__(
        self,
        current: Location | None = None,
        last_known: Location | None = None,
        permission: bool = True,
    ):
        self.current = current
        self.last_known = last_known
        self.permission = permission
        self.current_calls = 0

    async def get_current_location(self) -> Location | None:
        self.current_calls += 1
        return self.current

    async def get_last_known_location(self) -> Location | None:
        return self.last_known

    def has_location_permission(self) -> bool:
        return self.permission


class FakeWeatherClient:
    """Stands in for OpenMeteoClient."""

    def __init__(self, response: WeatherResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls = 0

    async def fetch_hourly(self, latitude: float, longitude: float, days: int | None = None) -> WeatherResponse:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self) -> None:
        pass


class FakeRenderer(NotificationRenderer):
    def __init__(self, accept: bool = True):
        self.accept = accept
        self.shown: list[NotificationMessage] = []
        self.failure_cancels = 0

    @property
    def channel_type(self) -> str:
        return "fake"

    async def show(self, message: NotificationMessage) -> bool:
        if self.accept:
            self.shown.append(message)
        return self.accept

    async def cancel_failure(self) -> None:
        self.failure_cancels += 1


SEOUL_CITY_HALL = Location(latitude=37.5665, longitude=126.978, name="Seoul")


def make_response(day: date, pops: dict[int, int | None], codes: dict[int, int] | None = None) -> WeatherResponse:
    """Build a forecast response for the given hours of one day."""
    codes = codes or {}
    hours = sorted(pops)
    return WeatherResponse(
        latitude=37.5665,
        longitude=126.978,
        timezone="Asia/Seoul",
        timezone_abbreviation="KST",
        hourly=HourlyData(
            time=[f"{day.isoformat()}T{hour:02d}:00" for hour in hours],
            precipitation_probability=[pops[hour] for hour in hours],
            temperature_2m=[10.0 for _ in hours],
            weather_code=[codes.get(hour) for hour in hours],
        ),
    )


def rain_codes(hours: range, precipitation_type: PrecipitationType = PrecipitationType.RAIN) -> dict[int, int]:
    code = {PrecipitationType.RAIN: 61, PrecipitationType.SNOW: 71, PrecipitationType.MIXED: 66}[precipitation_type]
    return {hour: code for hour in hours}
