"""Forecast lookups with cache fallback."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

import httpx

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger
from rainwake.models.forecast import DailyForecast, Location
from rainwake.observability.metrics import FORECAST_FETCHES
from rainwake.storage.forecast_cache import CacheEntry, ForecastCache
from rainwake.weather.client import OpenMeteoClient, WeatherApiError
from rainwake.weather.mapper import map_to_forecast

logger = get_logger(__name__)

STALE_CACHE_WARNING = "Using cached forecast because the weather service is unreachable"


class FetchError(str, Enum):
    NETWORK = "network"
    API = "api"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ForecastResult:
    """Forecast for the requested date, fresh or from cache."""

    forecast: DailyForecast
    from_cache: bool
    age_minutes: int = 0
    warning: str | None = None


@dataclass(frozen=True)
class ForecastFailure:
    error: FetchError
    message: str | None = None


ForecastOutcome = ForecastResult | ForecastFailure


def classify_fetch_error(error: Exception) -> FetchError:
    """Map a fetch exception to its failure kind."""
    if isinstance(error, httpx.TransportError):
        return FetchError.NETWORK
    if isinstance(error, (httpx.HTTPStatusError, WeatherApiError)):
        return FetchError.API
    return FetchError.UNKNOWN


class WeatherRepository:
    """Fetches forecasts, caching every successful response."""

    def __init__(self, client: OpenMeteoClient, cache: ForecastCache, clock: Clock):
        self._client = client
        self._cache = cache
        self._clock = clock

    def _from_cache(self, entry: CacheEntry, target_date: date, warning: str | None = None) -> ForecastResult:
        forecast = map_to_forecast(entry.response, target_date, fetched_at=self._clock.now())
        return ForecastResult(
            forecast=forecast,
            from_cache=True,
            age_minutes=entry.age_minutes,
            warning=warning,
        )

    async def get_forecast(
        self,
        location: Location,
        force_refresh: bool = False,
        target_date: date | None = None,
    ) -> ForecastOutcome:
        """Get the forecast of one local date for a location.

        Args:
            location: Coordinate to fetch for
            force_refresh: Skip the valid-cache short circuit
            target_date: Local date, defaults to tomorrow

        Returns:
            ForecastResult, or ForecastFailure when neither a fetch nor any
            cached response is available
        """
        if target_date is None:
            target_date = self._clock.tomorrow()

        if not force_refresh:
            entry = await self._cache.get_valid()
            if entry is not None:
                FORECAST_FETCHES.labels(source="cache").inc()
                logger.debug("Serving forecast from cache", age_minutes=entry.age_minutes)
                return self._from_cache(entry, target_date)

        try:
            response = await self._client.fetch_hourly(location.latitude, location.longitude)
        except Exception as e:
            kind = classify_fetch_error(e)
            entry = await self._cache.get_any()
            if entry is not None:
                FORECAST_FETCHES.labels(source="stale_cache").inc()
                logger.warning(
                    "Forecast fetch failed, serving cached forecast",
                    error=str(e),
                    error_kind=kind.value,
                    age_minutes=entry.age_minutes,
                )
                return self._from_cache(entry, target_date, warning=STALE_CACHE_WARNING)

            FORECAST_FETCHES.labels(source="failed").inc()
            logger.error("Forecast fetch failed", error=str(e), error_kind=kind.value)
            return ForecastFailure(error=kind, message=str(e) or type(e).__name__)

        await self._cache.save(response)
        FORECAST_FETCHES.labels(source="network").inc()
        forecast = map_to_forecast(response, target_date, fetched_at=self._clock.now())
        return ForecastResult(forecast=forecast, from_cache=False)

    async def get_cache_age_string(self) -> str | None:
        return await self._cache.get_age_string()
