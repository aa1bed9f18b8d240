"""Forecast response cache."""

from dataclasses import dataclass

from pydantic import ValidationError

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger
from rainwake.storage.kv import KeyValueStore, parse_int
from rainwake.storage.redis_client import PrefKeys
from rainwake.weather.client import WeatherResponse

logger = get_logger(__name__)

_MS_PER_MINUTE = 60_000


@dataclass(frozen=True)
class CacheEntry:
    """A cached response and how old it is."""

    response: WeatherResponse
    age_ms: int

    @property
    def age_minutes(self) -> int:
        return self.age_ms // _MS_PER_MINUTE

    @property
    def age_hours(self) -> int:
        return self.age_ms // (60 * _MS_PER_MINUTE)


class ForecastCache:
    """Single-slot cache of the latest raw forecast response."""

    def __init__(self, store: KeyValueStore, clock: Clock, ttl_hours: int = 6):
        self._store = store
        self._clock = clock
        self._ttl_ms = ttl_hours * 60 * _MS_PER_MINUTE

    async def save(self, response: WeatherResponse) -> None:
        async with self._store.edit() as e:
            e.set(PrefKeys.CACHED_FORECAST_JSON, response.model_dump_json())
            e.set(PrefKeys.CACHE_SAVED_TIME, self._clock.now_ms())

    async def get_valid(self) -> CacheEntry | None:
        """Cached response younger than the TTL, if any."""
        entry = await self.get_any()
        if entry is None or entry.age_ms >= self._ttl_ms:
            return None
        return entry

    async def get_any(self) -> CacheEntry | None:
        """Cached response regardless of age, if any."""
        prefs = await self._store.snapshot()
        raw = prefs.get(PrefKeys.CACHED_FORECAST_JSON)
        saved_at = parse_int(prefs.get(PrefKeys.CACHE_SAVED_TIME))
        if raw is None or saved_at is None:
            return None

        try:
            response = WeatherResponse.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding undecodable forecast cache")
            return None
        return CacheEntry(response=response, age_ms=self._clock.now_ms() - saved_at)

    async def get_age_string(self) -> str | None:
        """Cache age as '42 min' or '3 h 5 min', None when nothing is cached."""
        saved_at = await self._store.get_long(PrefKeys.CACHE_SAVED_TIME)
        if saved_at is None:
            return None
        minutes = (self._clock.now_ms() - saved_at) // _MS_PER_MINUTE
        if minutes < 60:
            return f"{minutes} min"
        return f"{minutes // 60} h {minutes % 60} min"

    async def clear(self) -> None:
        await self._store.remove(PrefKeys.CACHED_FORECAST_JSON, PrefKeys.CACHE_SAVED_TIME)
