"""User settings domain models."""

from datetime import time

from pydantic import BaseModel, Field

DEFAULT_NOTIFICATION_TIME = time(7, 30)
DEFAULT_POP_THRESHOLD = 40
MIN_THRESHOLD = 0
MAX_THRESHOLD = 80


class ManualLocation(BaseModel):
    """Manually configured location."""

    city_name: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class UserSettings(BaseModel):
    """Snapshot of user settings, immutable per read."""

    model_config = {"frozen": True}

    notification_time: time = DEFAULT_NOTIFICATION_TIME
    pop_threshold: int = Field(default=DEFAULT_POP_THRESHOLD, ge=0, le=100)
    is_enabled: bool = True
    manual_location: ManualLocation | None = None

    @property
    def pop_check_start_hour(self) -> int:
        """First hour of the probability window (notification hour - 2, floor 0)."""
        return max(self.notification_time.hour - 2, 0)

    @property
    def pop_check_end_hour(self) -> int:
        """Exclusive end hour of the window (notification hour + 2, cap 23)."""
        return min(self.notification_time.hour + 2, 23)


def clamp_threshold(threshold: int) -> int:
    return min(max(threshold, MIN_THRESHOLD), MAX_THRESHOLD)
