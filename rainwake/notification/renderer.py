"""Base class for notification renderers."""

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel

from rainwake.models.forecast import PrecipitationType


class NotificationKind(str, Enum):
    PRECIPITATION = "precipitation"
    FAILURE = "failure"
    FAILURE_CLEARED = "failure_cleared"


class NotificationMessage(BaseModel):
    """A rendered notification."""

    kind: NotificationKind
    title: str
    text: str
    pop: int | None = None
    precipitation_type: PrecipitationType | None = None


_PRECIPITATION_TEXT = {
    PrecipitationType.RAIN: ("Take an umbrella!", "Chance of rain today: {pop}%"),
    PrecipitationType.SNOW: ("Snow is coming!", "Chance of snow today: {pop}%"),
    PrecipitationType.MIXED: ("Rain or snow ahead!", "Chance of rain or snow today: {pop}%"),
}


def precipitation_message(pop: int, precipitation_type: PrecipitationType) -> NotificationMessage:
    title, text = _PRECIPITATION_TEXT[precipitation_type]
    return NotificationMessage(
        kind=NotificationKind.PRECIPITATION,
        title=title,
        text=text.format(pop=pop),
        pop=pop,
        precipitation_type=precipitation_type,
    )


def failure_message(failure_count: int, reason: str) -> NotificationMessage:
    return NotificationMessage(
        kind=NotificationKind.FAILURE,
        title="Weather check failed",
        text=(
            f"Could not get the weather {failure_count} times in a row.\n\n"
            f"Cause: {reason}\n\nOpen the app to check manually."
        ),
    )


class NotificationRenderer(ABC):
    """Abstract base class for notification renderers."""

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return channel type identifier."""
        pass

    @abstractmethod
    async def show(self, message: NotificationMessage) -> bool:
        """Render a notification.

        Args:
            message: Notification to render

        Returns:
            True if the notification was actually rendered
        """
        pass

    async def show_precipitation(self, pop: int, precipitation_type: PrecipitationType) -> bool:
        return await self.show(precipitation_message(pop, precipitation_type))

    async def show_failure(self, failure_count: int, reason: str) -> bool:
        return await self.show(failure_message(failure_count, reason))

    async def cancel_failure(self) -> None:
        """Withdraw a failure notification. Override if supported."""
        pass

    async def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
