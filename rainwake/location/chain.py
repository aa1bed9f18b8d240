"""Location resolution with fallbacks."""

import asyncio
from dataclasses import dataclass
from enum import Enum

from rainwake.core.logging import get_logger
from rainwake.location.provider import LocationProvider
from rainwake.models.forecast import Location, LocationSource
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)


class FallbackLevel(str, Enum):
    GPS_CURRENT = "gps_current"
    GPS_CACHED = "gps_cached"
    MANUAL = "manual"


@dataclass(frozen=True)
class LocationFound:
    location: Location
    level: FallbackLevel


@dataclass(frozen=True)
class PermissionRequired:
    """No location and no permission to get one."""


@dataclass(frozen=True)
class ManualSettingRequired:
    """Permission granted, yet nothing resolved; a manual location is needed."""


LocationResult = LocationFound | PermissionRequired | ManualSettingRequired


class LocationFallbackChain:
    """Resolve a location: live fix, then last known, then manual setting."""

    def __init__(
        self,
        provider: LocationProvider,
        preferences: PreferencesRepository,
        timeout: float = 60.0,
    ):
        self._provider = provider
        self._preferences = preferences
        self._timeout = timeout

    async def _current_location(self) -> Location | None:
        try:
            return await asyncio.wait_for(self._provider.get_current_location(), self._timeout)
        except asyncio.TimeoutError:
            logger.info("Live location fix timed out", timeout=self._timeout)
            return None

    async def resolve(self) -> LocationResult:
        """Try each source once; the first success wins.

        Returns:
            LocationFound, or PermissionRequired / ManualSettingRequired
            when every source came up empty
        """
        location = await self._current_location()
        if location is not None:
            return LocationFound(location, FallbackLevel.GPS_CURRENT)

        location = await self._provider.get_last_known_location()
        if location is not None:
            logger.info("Using last known location")
            return LocationFound(location, FallbackLevel.GPS_CACHED)

        settings = await self._preferences.get_settings()
        manual = settings.manual_location
        if manual is not None:
            logger.info("Using manual location", city=manual.city_name)
            return LocationFound(
                Location(
                    latitude=manual.latitude,
                    longitude=manual.longitude,
                    name=manual.city_name,
                    source=LocationSource.MANUAL,
                ),
                FallbackLevel.MANUAL,
            )

        if not self._provider.has_location_permission():
            return PermissionRequired()
        return ManualSettingRequired()
