"""Turns weather decisions into scheduled notifications and status."""

from rainwake.core.logging import get_logger
from rainwake.models.decision import (
    Cancelled,
    DecisionError,
    ErrorType,
    Failed,
    NoRain,
    RainExpected,
    Scheduled,
    ScheduleResult,
    WeatherDecision,
)
from rainwake.models.schedule import ScheduleFailure
from rainwake.models.status import AppStatus
from rainwake.observability.metrics import CONSECUTIVE_FAILURES, NOTIFICATIONS
from rainwake.notification.renderer import NotificationRenderer
from rainwake.scheduler.alarm import AlarmScheduler
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)

_ERROR_STATUS = {
    ErrorType.NETWORK: AppStatus.FETCH_FAILED_NETWORK,
    ErrorType.LOCATION: AppStatus.FETCH_FAILED_LOCATION,
    ErrorType.API: AppStatus.FETCH_FAILED_API,
    ErrorType.UNKNOWN: AppStatus.FETCH_FAILED_API,
}


class NotificationScheduleService:
    """Applies a decision: schedule, cancel, or count a failure."""

    def __init__(
        self,
        scheduler: AlarmScheduler,
        preferences: PreferencesRepository,
        renderer: NotificationRenderer,
        failure_threshold: int = 3,
    ):
        self._scheduler = scheduler
        self._preferences = preferences
        self._renderer = renderer
        self._failure_threshold = failure_threshold

    async def apply(self, decision: WeatherDecision) -> ScheduleResult:
        """Apply a decision.

        Args:
            decision: Outcome of the decision engine

        Returns:
            Scheduled, Cancelled, or Failed
        """
        if isinstance(decision, RainExpected):
            return await self._handle_rain_expected(decision)
        if isinstance(decision, NoRain):
            return await self._handle_no_rain(decision)
        return await self._handle_error(decision)

    async def _handle_rain_expected(self, decision: RainExpected) -> ScheduleResult:
        result = await self._scheduler.schedule_notification(
            decision.notification_time,
            decision.max_pop,
            decision.precipitation_type,
        )

        if isinstance(result, ScheduleFailure):
            reason = result.reason.to_user_message()
            count = await self._record_failure(AppStatus.FETCH_FAILED_API, reason)
            return Failed(f"{reason} ({count} consecutive failures)")

        status = AppStatus.SCHEDULED_EXACT if result.info.is_exact else AppStatus.SCHEDULED_APPROXIMATE
        await self._preferences.update_status(status, pop=decision.max_pop, location_name=decision.location.name)
        await self._record_success()
        return Scheduled(
            is_exact=result.info.is_exact,
            scheduled_time=decision.notification_time,
            pop=decision.max_pop,
        )

    async def _handle_no_rain(self, decision: NoRain) -> ScheduleResult:
        await self._scheduler.cancel()
        await self._preferences.update_status(
            AppStatus.NO_RAIN_EXPECTED,
            pop=decision.max_pop,
            location_name=decision.location.name,
        )
        await self._record_success()
        logger.info("No rain expected", max_pop=decision.max_pop, threshold=decision.threshold)
        return Cancelled()

    async def _handle_error(self, decision: DecisionError) -> ScheduleResult:
        reason = decision.message or "Unknown error"
        count = await self._record_failure(_ERROR_STATUS[decision.kind], reason)
        return Failed(f"{reason} ({count} consecutive failures)")

    async def _record_success(self) -> None:
        # A stored count at the threshold means a failure notice is outstanding
        previous = await self._preferences.get_failure_count()
        await self._preferences.reset_failure_count()
        CONSECUTIVE_FAILURES.set(0)
        if previous >= self._failure_threshold:
            await self._renderer.cancel_failure()

    async def _record_failure(self, status: AppStatus, reason: str) -> int:
        count = await self._preferences.increment_failure_count()
        await self._preferences.update_status(status)
        CONSECUTIVE_FAILURES.set(count)
        logger.warning("Weather check failed", status=status.code, reason=reason, consecutive_failures=count)

        if count >= self._failure_threshold:
            shown = await self._renderer.show_failure(count, reason)
            NOTIFICATIONS.labels(kind="failure", status="shown" if shown else "not_shown").inc()
        return count
