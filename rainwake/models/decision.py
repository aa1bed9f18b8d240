"""Weather decision and scheduling result domain models."""

from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum

from rainwake.models.forecast import Location, PrecipitationType


class ErrorType(str, Enum):
    """Why a decision could not be made."""

    NETWORK = "network"
    LOCATION = "location"
    API = "api"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RainExpected:
    """Precipitation expected - notification needed."""

    max_pop: int
    location: Location
    notification_time: time
    fetched_at: datetime
    precipitation_type: PrecipitationType = PrecipitationType.RAIN


@dataclass(frozen=True)
class NoRain:
    """No precipitation expected - notification not needed."""

    max_pop: int
    threshold: int
    location: Location
    fetched_at: datetime


@dataclass(frozen=True)
class DecisionError:
    """The decision pipeline failed."""

    kind: ErrorType
    message: str | None = None


WeatherDecision = RainExpected | NoRain | DecisionError


@dataclass(frozen=True)
class Scheduled:
    """Notification scheduled for the decision."""

    is_exact: bool
    scheduled_time: time
    pop: int


@dataclass(frozen=True)
class Cancelled:
    """No notification needed, any pending one was cancelled."""


@dataclass(frozen=True)
class Failed:
    """Scheduling or decision failed."""

    reason: str


ScheduleResult = Scheduled | Cancelled | Failed
