"""Location provider backed by the device's configured coordinates."""

from typing import Awaitable, Callable

from rainwake.core.config import Settings
from rainwake.core.logging import get_logger
from rainwake.location.callbacks import (
    CancellationToken,
    FailureCallback,
    SuccessCallback,
    await_location_callback,
)
from rainwake.location.provider import LocationProvider
from rainwake.models.forecast import Location, LocationSource

logger = get_logger(__name__)

ReverseGeocoder = Callable[[float, float], Awaitable[str | None]]


class DeviceLocationProvider(LocationProvider):
    """Reports the coordinates this host is configured with."""

    def __init__(self, settings: Settings, reverse_geocode: ReverseGeocoder | None = None):
        self._settings = settings
        self._reverse_geocode = reverse_geocode
        self._last_known: Location | None = None

    def has_location_permission(self) -> bool:
        return self._settings.device_latitude is not None and self._settings.device_longitude is not None

    def _start_request(
        self,
        on_success: SuccessCallback,
        on_failure: FailureCallback,
        token: CancellationToken,
    ) -> None:
        if not self.has_location_permission():
            raise PermissionError("Device coordinates are not configured")
        if token.is_cancelled:
            return
        on_success(
            Location(
                latitude=self._settings.device_latitude,
                longitude=self._settings.device_longitude,
                source=LocationSource.GPS,
            )
        )

    async def _location_name(self, latitude: float, longitude: float) -> str | None:
        """Best-effort place name; None when it cannot be determined."""
        if self._reverse_geocode is None:
            return self._settings.device_location_name
        try:
            return await self._reverse_geocode(latitude, longitude)
        except Exception as e:
            logger.warning("Reverse geocoding failed", error=str(e))
            return None

    async def get_current_location(self) -> Location | None:
        if not self.has_location_permission():
            return None

        fix = await await_location_callback(self._start_request, self._settings.location_timeout_seconds)
        if fix is None:
            return None

        name = await self._location_name(fix.latitude, fix.longitude)
        location = fix.model_copy(update={"name": name})
        self._last_known = location
        return location

    async def get_last_known_location(self) -> Location | None:
        if not self.has_location_permission() or self._last_known is None:
            return None
        return self._last_known.model_copy(update={"source": LocationSource.CACHED})
