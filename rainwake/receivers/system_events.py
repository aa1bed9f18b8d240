"""Boot and clock change recovery."""

from enum import Enum
from typing import Any

from rainwake.core.logging import get_logger
from rainwake.orchestrator.scheduler import RecheckScheduler
from rainwake.receivers.base import PendingResult, Receiver
from rainwake.scheduler.alarm import AlarmScheduler
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)

ACTION = "action"


class SystemEvent(str, Enum):
    BOOT_COMPLETED = "BOOT_COMPLETED"
    QUICKBOOT_POWERON = "QUICKBOOT_POWERON"
    TIME_CHANGED = "TIME_CHANGED"
    TIMEZONE_CHANGED = "TIMEZONE_CHANGED"
    DATE_CHANGED = "DATE_CHANGED"


class SystemEventReceiver(Receiver):
    """Re-arms periodic checks and restores alarms after boot or a clock change."""

    name = "system_event"

    def __init__(
        self,
        recheck_scheduler: RecheckScheduler,
        alarm_scheduler: AlarmScheduler,
        preferences: PreferencesRepository,
    ):
        self._recheck_scheduler = recheck_scheduler
        self._alarm_scheduler = alarm_scheduler
        self._preferences = preferences

    def dispatch(self, event: SystemEvent) -> PendingResult:
        return self.receive({ACTION: event.value})

    async def handle(self, payload: dict[str, Any]) -> None:
        try:
            event = SystemEvent(payload.get(ACTION))
        except ValueError:
            logger.debug("Ignoring system event", action=payload.get(ACTION))
            return

        if await self._preferences.is_app_enabled():
            self._recheck_scheduler.schedule_periodic_checks()
        else:
            logger.info("App disabled, periodic checks not armed", event=event.value)

        try:
            restored = await self._alarm_scheduler.restore_if_needed()
            logger.info("Alarm restore finished", event=event.value, restored=restored)
        except Exception as e:
            logger.error("Alarm restore failed", event=event.value, error=str(e), exc_info=True)

        try:
            restored = await self._alarm_scheduler.restore_pre_check_if_needed()
            logger.info("Pre-check restore finished", event=event.value, restored=restored)
        except Exception as e:
            logger.error("Pre-check restore failed", event=event.value, error=str(e), exc_info=True)
