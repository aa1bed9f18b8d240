"""Forecast and location domain models."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

RAIN_CODES = frozenset({51, 53, 55, 61, 63, 65, 80, 81, 82})
SNOW_CODES = frozenset({71, 73, 75, 77, 85, 86})
MIXED_CODES = frozenset({56, 57, 66, 67})


class PrecipitationType(str, Enum):
    """Precipitation type carried through to the notification."""

    RAIN = "RAIN"
    SNOW = "SNOW"
    MIXED = "MIXED"

    @classmethod
    def from_weather_code(cls, code: int | None) -> "PrecipitationType | None":
        """Map a WMO weather code to a precipitation type."""
        if code is None:
            return None
        if code in RAIN_CODES:
            return cls.RAIN
        if code in SNOW_CODES:
            return cls.SNOW
        if code in MIXED_CODES:
            return cls.MIXED
        return None

    @classmethod
    def parse(cls, value: str | None) -> "PrecipitationType":
        """Parse a stored name, defaulting to RAIN for unknown values."""
        try:
            return cls(value) if value else cls.RAIN
        except ValueError:
            return cls.RAIN


class HourlyForecast(BaseModel):
    """Forecast for a single hour."""

    time: datetime = Field(..., description="Local wall-clock time of the hour")
    precipitation_probability: int = Field(default=0, ge=0, le=100)
    temperature: float | None = None
    weather_code: int | None = None

    @property
    def precipitation_type(self) -> PrecipitationType | None:
        return PrecipitationType.from_weather_code(self.weather_code)


class DailyForecast(BaseModel):
    """All hourly forecasts of one calendar date."""

    date: date
    hourly_forecasts: list[HourlyForecast] = Field(default_factory=list)
    fetched_at: datetime

    def _in_range(self, start_hour: int, end_hour: int) -> list[HourlyForecast]:
        return [h for h in self.hourly_forecasts if start_hour <= h.time.hour < end_hour]

    def max_pop_in_range(self, start_hour: int, end_hour: int) -> int:
        """Maximum precipitation probability for hours in [start_hour, end_hour)."""
        return max((h.precipitation_probability for h in self._in_range(start_hour, end_hour)), default=0)

    def avg_pop_in_range(self, start_hour: int, end_hour: int) -> int:
        """Unweighted mean precipitation probability, truncated."""
        relevant = self._in_range(start_hour, end_hour)
        if not relevant:
            return 0
        return int(sum(h.precipitation_probability for h in relevant) / len(relevant))

    def dominant_precipitation_type(self, start_hour: int, end_hour: int) -> PrecipitationType:
        """Dominant precipitation type within the range.

        No precipitation codes at all defaults to RAIN. Any mixed-coded hour,
        or rain and snow together, gives MIXED.
        """
        types = {
            h.precipitation_type
            for h in self._in_range(start_hour, end_hour)
            if h.precipitation_type is not None
        }
        if not types:
            return PrecipitationType.RAIN
        if PrecipitationType.MIXED in types or len(types) > 1:
            return PrecipitationType.MIXED
        return types.pop()


class LocationSource(str, Enum):
    """Where a coordinate came from."""

    GPS = "gps"
    CACHED = "cached"
    MANUAL = "manual"


class Location(BaseModel):
    """Resolved coordinate."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str | None = None
    source: LocationSource = LocationSource.GPS
