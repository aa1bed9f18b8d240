"""Notification alarm scheduling with exact/inexact fallback."""

from dataclasses import dataclass
from datetime import time, timedelta

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger
from rainwake.models.forecast import PrecipitationType
from rainwake.models.schedule import (
    AlarmScheduleResult,
    FailureReason,
    ScheduleFailure,
    ScheduleInfo,
    ScheduleSuccess,
)
from rainwake.observability.metrics import ALARMS_SCHEDULED, PRE_CHECK_RESCHEDULES
from rainwake.scheduler.capability import AlarmCapability, AlarmPermissionError
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)

ALARM_KEY = "rain_alarm"
PRE_CHECK_KEY = "weather_pre_check"

PAYLOAD_POP = "pop"
PAYLOAD_PRECIP_TYPE = "precipitation_type"

_MINUTE_MS = 60_000


@dataclass(frozen=True)
class _Armed:
    trigger_time_ms: int
    is_exact: bool
    buffer_applied: bool


class AlarmScheduler:
    """Arms the single notification alarm and the pre-check alarm.

    The outcome is decided in one place: exact is tried first, inexact with
    a buffer is the fallback, and only what was actually armed is persisted.
    """

    def __init__(
        self,
        capability: AlarmCapability,
        preferences: PreferencesRepository,
        clock: Clock,
        inexact_buffer_minutes: int = 10,
        pre_check_offset_minutes: int = 60,
    ):
        self._capability = capability
        self._preferences = preferences
        self._clock = clock
        self._buffer_minutes = inexact_buffer_minutes
        self._pre_check_offset_ms = pre_check_offset_minutes * _MINUTE_MS

    # ----- notification alarm -----

    async def schedule_notification(
        self,
        notification_time: time,
        pop: int,
        precipitation_type: PrecipitationType = PrecipitationType.RAIN,
    ) -> AlarmScheduleResult:
        """Schedule for the next occurrence of a local time of day."""
        target_ms = self._clock.next_occurrence_ms(notification_time)
        return await self.schedule_at(target_ms, pop, precipitation_type)

    async def schedule_at(
        self,
        target_ms: int,
        pop: int,
        precipitation_type: PrecipitationType = PrecipitationType.RAIN,
    ) -> AlarmScheduleResult:
        """Arm the notification alarm for an absolute instant.

        Args:
            target_ms: When the user wants to be notified (epoch millis)
            pop: Precipitation probability delivered with the alarm
            precipitation_type: Precipitation type delivered with the alarm

        Returns:
            ScheduleSuccess with what was armed and persisted, or
            ScheduleFailure; a failure leaves the record untouched
        """
        now_ms = self._clock.now_ms()
        if target_ms <= now_ms:
            logger.warning("Alarm target is not in the future", target_ms=target_ms, now_ms=now_ms)
            ALARMS_SCHEDULED.labels(result="invalid_time", exact="none").inc()
            return ScheduleFailure(FailureReason.INVALID_TIME)

        payload = {PAYLOAD_POP: pop, PAYLOAD_PRECIP_TYPE: precipitation_type.value}
        self._capability.cancel(ALARM_KEY)

        outcome = self._arm(target_ms, payload)
        if isinstance(outcome, ScheduleFailure):
            logger.error(
                "Alarm scheduling failed",
                reason=outcome.reason.value,
                error=str(outcome.exception) if outcome.exception else None,
            )
            ALARMS_SCHEDULED.labels(result=outcome.reason.value, exact="none").inc()
            return outcome

        info = ScheduleInfo(
            target_time_ms=target_ms,
            trigger_time_ms=outcome.trigger_time_ms,
            is_exact=outcome.is_exact,
            buffer_applied=outcome.buffer_applied,
            buffer_minutes=self._buffer_minutes if outcome.buffer_applied else 0,
            pop=pop,
            precipitation_type=precipitation_type,
        )
        await self._preferences.save_scheduled_alarm(info)

        ALARMS_SCHEDULED.labels(result="success", exact=str(info.is_exact).lower()).inc()
        logger.info(
            "Alarm scheduled",
            target=self._clock.format_ms(info.target_time_ms),
            trigger=self._clock.format_ms(info.trigger_time_ms),
            exact=info.is_exact,
            buffer_applied=info.buffer_applied,
            pop=pop,
        )
        return ScheduleSuccess(info)

    def _arm(self, target_ms: int, payload: dict) -> _Armed | ScheduleFailure:
        if not self._capability.can_schedule_exact():
            return self._arm_inexact(target_ms, payload)

        try:
            self._capability.arm_exact(ALARM_KEY, target_ms, payload)
        except AlarmPermissionError as e:
            # Permission revoked between the check and the call
            logger.warning("Exact alarm rejected, falling back to inexact", error=str(e))
            try:
                trigger_ms = self._buffered_trigger_ms(target_ms)
                self._capability.arm_inexact(ALARM_KEY, trigger_ms, payload)
            except Exception as fallback_error:
                logger.error("Inexact fallback failed", error=str(fallback_error))
                return ScheduleFailure(FailureReason.SECURITY_EXCEPTION, e)
            return _Armed(trigger_ms, is_exact=False, buffer_applied=True)
        except Exception as e:
            return ScheduleFailure(FailureReason.UNKNOWN_ERROR, e)
        return _Armed(target_ms, is_exact=True, buffer_applied=False)

    def _arm_inexact(self, target_ms: int, payload: dict) -> _Armed | ScheduleFailure:
        try:
            trigger_ms = self._buffered_trigger_ms(target_ms)
            self._capability.arm_inexact(ALARM_KEY, trigger_ms, payload)
        except AlarmPermissionError as e:
            return ScheduleFailure(FailureReason.SECURITY_EXCEPTION, e)
        except Exception as e:
            return ScheduleFailure(FailureReason.UNKNOWN_ERROR, e)
        return _Armed(trigger_ms, is_exact=False, buffer_applied=True)

    def _buffered_trigger_ms(self, target_ms: int) -> int:
        """Move the trigger earlier by the buffer, never into the past."""
        buffered = target_ms - self._buffer_minutes * _MINUTE_MS
        now_ms = self._clock.now_ms()
        if buffered <= now_ms:
            logger.info("Buffered trigger would be in the past, using now + 1 min")
            return now_ms + _MINUTE_MS
        return buffered

    async def cancel(self) -> None:
        """Cancel the notification alarm and delete its record."""
        self._capability.cancel(ALARM_KEY)
        await self._preferences.clear_scheduled_alarm()
        logger.info("Alarm cancelled")

    async def get_scheduled_info(self) -> ScheduleInfo | None:
        return await self._preferences.get_scheduled_alarm_info()

    def can_schedule_exact(self) -> bool:
        return self._capability.can_schedule_exact()

    async def restore_if_needed(self) -> bool:
        """Re-arm the persisted alarm after a restart or clock change.

        Returns:
            True if the alarm was re-armed
        """
        if not await self._preferences.is_app_enabled():
            logger.debug("App disabled, skipping alarm restore")
            return False

        info = await self._preferences.get_scheduled_alarm_info()
        if info is None:
            logger.debug("No scheduled alarm to restore")
            return False

        if info.target_time_ms <= self._clock.now_ms():
            logger.info("Scheduled alarm already elapsed, clearing", target=self._clock.format_ms(info.target_time_ms))
            await self._preferences.clear_scheduled_alarm()
            return False

        result = await self.schedule_at(info.target_time_ms, info.pop, info.precipitation_type)
        if isinstance(result, ScheduleFailure):
            logger.error("Alarm restore failed", reason=result.reason.value)
            return False
        logger.info("Alarm restored", exact=result.info.is_exact)
        return True

    # ----- pre-check alarm -----

    def _pre_check_ms(self, notification_time: time, next_day: bool) -> int:
        now_ms = self._clock.now_ms()
        notification_ms = self._clock.next_occurrence_ms(notification_time)
        pre_check_ms = notification_ms - self._pre_check_offset_ms
        if pre_check_ms > now_ms:
            return pre_check_ms

        if next_day:
            following = self._clock.local_date_of(notification_ms) + timedelta(days=1)
            return self._clock.at_ms(following, notification_time) - self._pre_check_offset_ms
        # Notification is less than the offset away
        return now_ms + _MINUTE_MS

    async def schedule_pre_check(self, notification_time: time, next_day: bool = False) -> bool:
        """Arm the pre-check alarm ahead of the next notification.

        Args:
            notification_time: Local notification time of day
            next_day: When the upcoming pre-check slot has passed, use the
                following day's slot instead of firing again shortly

        Returns:
            True if the pre-check alarm was armed
        """
        pre_check_ms = self._pre_check_ms(notification_time, next_day)
        self._capability.cancel(PRE_CHECK_KEY)

        try:
            self._capability.arm_exact(PRE_CHECK_KEY, pre_check_ms, {})
        except AlarmPermissionError:
            logger.warning("Exact pre-check rejected, using inexact")
            try:
                self._capability.arm_inexact(PRE_CHECK_KEY, pre_check_ms, {})
            except Exception as e:
                logger.error("Failed to schedule pre-check alarm", error=str(e))
                PRE_CHECK_RESCHEDULES.labels(status="failed").inc()
                return False
        except Exception as e:
            logger.error("Failed to schedule pre-check alarm", error=str(e))
            PRE_CHECK_RESCHEDULES.labels(status="failed").inc()
            return False

        await self._preferences.save_pre_check_time(pre_check_ms)
        PRE_CHECK_RESCHEDULES.labels(status="scheduled").inc()
        logger.info("Pre-check alarm scheduled", at=self._clock.format_ms(pre_check_ms))
        return True

    async def cancel_pre_check(self) -> None:
        self._capability.cancel(PRE_CHECK_KEY)
        await self._preferences.clear_pre_check_time()
        logger.info("Pre-check alarm cancelled")

    async def restore_pre_check_if_needed(self) -> bool:
        """Arm the pre-check alarm from the current settings when enabled."""
        settings = await self._preferences.get_settings()
        if not settings.is_enabled:
            logger.debug("App disabled, skipping pre-check restore")
            return False
        return await self.schedule_pre_check(settings.notification_time)
