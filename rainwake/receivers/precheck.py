"""Pre-check alarm receiver."""

from typing import Any

from rainwake.core.logging import get_logger
from rainwake.engine.decision import WeatherDecisionEngine
from rainwake.notification.policy import NotificationScheduleService
from rainwake.receivers.base import Receiver
from rainwake.scheduler.alarm import AlarmScheduler
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)


class PreCheckReceiver(Receiver):
    """Re-checks the weather shortly before the notification time.

    Runs independently of the periodic checks and re-arms itself for the
    next day after every firing, whatever happened during the check.
    """

    name = "pre_check"

    def __init__(
        self,
        engine: WeatherDecisionEngine,
        schedule_service: NotificationScheduleService,
        scheduler: AlarmScheduler,
        preferences: PreferencesRepository,
    ):
        self._engine = engine
        self._schedule_service = schedule_service
        self._scheduler = scheduler
        self._preferences = preferences

    async def handle(self, payload: dict[str, Any]) -> None:
        try:
            await self._check()
        except Exception as e:
            logger.error("Error in pre-check", error=str(e), exc_info=True)
        finally:
            await self._reschedule()

    async def _check(self) -> None:
        if not await self._preferences.is_app_enabled():
            logger.info("App disabled, skipping pre-check")
            return

        decision = await self._engine.decide(force_refresh=True)
        result = await self._schedule_service.apply(decision)
        logger.info("Pre-check finished", decision=type(decision).__name__, result=type(result).__name__)

    async def _reschedule(self) -> None:
        try:
            settings = await self._preferences.get_settings()
            if settings.is_enabled:
                scheduled = await self._scheduler.schedule_pre_check(settings.notification_time, next_day=True)
                logger.info("Next pre-check scheduled", scheduled=scheduled)
        except Exception as e:
            logger.error("Failed to reschedule pre-check alarm", error=str(e), exc_info=True)
