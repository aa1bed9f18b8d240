"""Periodic weather check job."""

from enum import Enum

from rainwake.core.logging import get_logger
from rainwake.engine.decision import WeatherDecisionEngine
from rainwake.models.decision import Failed
from rainwake.notification.policy import NotificationScheduleService
from rainwake.observability.metrics import RECHECK_RUNS
from rainwake.scheduler.alarm import AlarmScheduler

logger = get_logger(__name__)


class JobResult(str, Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


class WeatherCheckJob:
    """One forced decide-and-apply run that also keeps the pre-check chain alive."""

    def __init__(
        self,
        engine: WeatherDecisionEngine,
        schedule_service: NotificationScheduleService,
        scheduler: AlarmScheduler,
        max_attempts: int = 3,
    ):
        self._engine = engine
        self._schedule_service = schedule_service
        self._scheduler = scheduler
        self._max_attempts = max_attempts

    def _retry_or_fail(self, attempt: int) -> JobResult:
        return JobResult.RETRY if attempt < self._max_attempts else JobResult.FAILURE

    async def run(self, attempt: int = 0) -> JobResult:
        """Run the check.

        Args:
            attempt: Number of earlier attempts of this run

        Returns:
            SUCCESS when scheduled or cancelled; RETRY or FAILURE otherwise
        """
        try:
            decision = await self._engine.decide(force_refresh=True)
            result = await self._schedule_service.apply(decision)
            if isinstance(result, Failed):
                logger.warning("Weather check failed", attempt=attempt, reason=result.reason)
                outcome = self._retry_or_fail(attempt)
            else:
                outcome = JobResult.SUCCESS
        except Exception as e:
            logger.error("Weather check error", attempt=attempt, error=str(e), exc_info=True)
            outcome = self._retry_or_fail(attempt)

        try:
            await self._scheduler.restore_pre_check_if_needed()
        except Exception as e:
            logger.error("Failed to schedule pre-check alarm", error=str(e), exc_info=True)

        RECHECK_RUNS.labels(result=outcome.value).inc()
        return outcome
