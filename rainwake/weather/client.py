"""Open-Meteo hourly forecast client."""

import httpx
from pydantic import BaseModel, ValidationError

from rainwake.core.config import Settings
from rainwake.core.logging import get_logger

logger = get_logger(__name__)

HOURLY_VARIABLES = "precipitation_probability,temperature_2m,weather_code"


class WeatherApiError(Exception):
    """The forecast service answered, but not with a usable forecast."""


class HourlyData(BaseModel):
    time: list[str]
    precipitation_probability: list[int | None]
    temperature_2m: list[float | None] | None = None
    weather_code: list[int | None] | None = None


class HourlyUnits(BaseModel):
    time: str | None = None
    precipitation_probability: str | None = None
    temperature_2m: str | None = None


class WeatherResponse(BaseModel):
    """Raw forecast response, cached verbatim."""

    latitude: float
    longitude: float
    timezone: str
    timezone_abbreviation: str | None = None
    elevation: float | None = None
    hourly: HourlyData
    hourly_units: HourlyUnits | None = None


class OpenMeteoClient:
    """Async client for the Open-Meteo forecast endpoint."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._client = client or httpx.AsyncClient(
            base_url=settings.weather_base_url,
            timeout=settings.weather_timeout,
        )

    async def fetch_hourly(
        self,
        latitude: float,
        longitude: float,
        days: int | None = None,
    ) -> WeatherResponse:
        """Fetch hourly forecasts for a coordinate.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            days: Forecast days, defaults to the configured value

        Returns:
            Parsed forecast response

        Raises:
            httpx.TransportError: Connection failed or timed out
            httpx.HTTPStatusError: Non-2xx response
            WeatherApiError: Error payload or undecodable body
        """
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "hourly": HOURLY_VARIABLES,
            "timezone": self._settings.timezone,
            "forecast_days": days or self._settings.forecast_days,
        }
        response = await self._client.get("v1/forecast", params=params)
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise WeatherApiError("Forecast body is not JSON") from e
        if isinstance(data, dict) and data.get("error"):
            raise WeatherApiError(data.get("reason") or "Forecast service error")

        try:
            return WeatherResponse.model_validate(data)
        except ValidationError as e:
            raise WeatherApiError("Unexpected forecast payload") from e

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
