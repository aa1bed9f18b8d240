"""Base class for location providers."""

from abc import ABC, abstractmethod

from rainwake.models.forecast import Location


class LocationProvider(ABC):
    """Abstract source of device coordinates."""

    @abstractmethod
    async def get_current_location(self) -> Location | None:
        """Request a live fix.

        Returns:
            Location, or None when no fix could be obtained
        """
        pass

    @abstractmethod
    async def get_last_known_location(self) -> Location | None:
        """Return the most recent fix without requesting a new one."""
        pass

    @abstractmethod
    def has_location_permission(self) -> bool:
        """Return whether location access is granted."""
        pass
