"""Settings updates and the re-arming they require."""

from rainwake.core.logging import get_logger
from rainwake.models.settings import UserSettings
from rainwake.orchestrator.scheduler import RecheckScheduler
from rainwake.scheduler.alarm import AlarmScheduler
from rainwake.schemas.settings import SettingsUpdate
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)


class SettingsService:
    """Persists settings changes and keeps the schedules consistent with them."""

    def __init__(
        self,
        preferences: PreferencesRepository,
        recheck_scheduler: RecheckScheduler,
        alarm_scheduler: AlarmScheduler,
    ):
        self._preferences = preferences
        self._recheck_scheduler = recheck_scheduler
        self._alarm_scheduler = alarm_scheduler

    async def update(self, update: SettingsUpdate) -> UserSettings:
        """Apply a partial update.

        Disabling cancels the periodic checks, the notification alarm and the
        pre-check alarm. Any other change re-arms the periodic checks and the
        pre-check alarm from the new settings.

        Returns:
            The settings after the update
        """
        if update.notification_time is not None:
            await self._preferences.update_notification_time(update.notification_time)
        if update.pop_threshold is not None:
            await self._preferences.update_pop_threshold(update.pop_threshold)
        if update.manual_location is not None:
            await self._preferences.update_manual_location(update.manual_location)
        elif update.clear_manual_location:
            await self._preferences.update_manual_location(None)
        if update.is_enabled is not None:
            await self._preferences.update_enabled(update.is_enabled)

        settings = await self._preferences.get_settings()
        if not settings.is_enabled:
            self._recheck_scheduler.cancel_all()
            await self._alarm_scheduler.cancel()
            await self._alarm_scheduler.cancel_pre_check()
            logger.info("Notifications disabled, all schedules cancelled")
            return settings

        self._recheck_scheduler.schedule_periodic_checks()
        await self._alarm_scheduler.restore_pre_check_if_needed()
        logger.info(
            "Settings updated",
            notification_time=settings.notification_time.isoformat(timespec="minutes"),
            threshold=settings.pop_threshold,
        )
        return settings
