"""Persisted alarm schedule domain models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable

from pydantic import BaseModel, Field

from rainwake.core.clock import from_millis
from rainwake.models.forecast import PrecipitationType


class FailureReason(str, Enum):
    """Why an alarm could not be armed."""

    EXACT_ALARM_PERMISSION_DENIED = "exact_alarm_permission_denied"
    SECURITY_EXCEPTION = "security_exception"
    INVALID_TIME = "invalid_time"
    UNKNOWN_ERROR = "unknown_error"

    def to_user_message(self) -> str:
        """Human-readable reason shown to the user."""
        return _USER_MESSAGES[self]


_USER_MESSAGES = {
    FailureReason.EXACT_ALARM_PERMISSION_DENIED: (
        "Exact alarm permission is required. Allow it in the system settings."
    ),
    FailureReason.SECURITY_EXCEPTION: "Alarm permission was denied. Check the app settings.",
    FailureReason.INVALID_TIME: "Invalid notification time.",
    FailureReason.UNKNOWN_ERROR: "An error occurred while setting the alarm.",
}


class ScheduleInfo(BaseModel):
    """The single outstanding alarm, as actually armed.

    Times are epoch milliseconds so a stored record reconstructs bit for bit.
    """

    target_time_ms: int = Field(..., description="When the user wants to be notified")
    trigger_time_ms: int = Field(..., description="When the alarm was actually armed")
    is_exact: bool = Field(..., description="Whether an exact wake-up was honoured")
    buffer_applied: bool = Field(default=False, description="Trigger moved earlier")
    buffer_minutes: int = Field(default=0, ge=0)
    pop: int = Field(default=0, ge=0, le=100, description="Precipitation probability payload")
    precipitation_type: PrecipitationType = PrecipitationType.RAIN

    @property
    def target_time(self) -> datetime:
        return from_millis(self.target_time_ms)

    @property
    def trigger_time(self) -> datetime:
        return from_millis(self.trigger_time_ms)

    @property
    def buffer_delta_ms(self) -> int:
        return self.target_time_ms - self.trigger_time_ms

    def to_diagnostic_string(self, format_ms: Callable[[int], str] | None = None) -> str:
        """Multi-line summary for diagnostics.

        Args:
            format_ms: Optional formatter for epoch millis (defaults to UTC ISO)
        """
        fmt = format_ms or (lambda ms: from_millis(ms).strftime("%Y-%m-%d %H:%M UTC"))
        lines = [
            f"Target time: {fmt(self.target_time_ms)}",
            f"Trigger time: {fmt(self.trigger_time_ms)}",
            f"Alarm type: {'exact' if self.is_exact else 'inexact'}",
        ]
        if self.buffer_applied:
            lines.append(f"Buffer: {self.buffer_minutes} min earlier")
        lines.append(f"Precipitation: {self.pop}% ({self.precipitation_type.value})")
        return "\n".join(lines)


@dataclass(frozen=True)
class ScheduleSuccess:
    """Alarm armed; `info` is what was actually armed and persisted."""

    info: ScheduleInfo


@dataclass(frozen=True)
class ScheduleFailure:
    """Alarm not armed; nothing was persisted."""

    reason: FailureReason
    exception: BaseException | None = None


AlarmScheduleResult = ScheduleSuccess | ScheduleFailure
