"""Notification alarm receiver."""

from typing import Any

from rainwake.core.logging import get_logger
from rainwake.models.forecast import PrecipitationType
from rainwake.notification.renderer import NotificationRenderer
from rainwake.observability.metrics import NOTIFICATIONS
from rainwake.receivers.base import Receiver
from rainwake.scheduler.alarm import PAYLOAD_POP, PAYLOAD_PRECIP_TYPE
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)


class AlarmReceiver(Receiver):
    """Renders the precipitation notification when the alarm fires."""

    name = "alarm"

    def __init__(
        self,
        preferences: PreferencesRepository,
        renderer: NotificationRenderer,
        duplicate_suppression_enabled: bool = True,
    ):
        self._preferences = preferences
        self._renderer = renderer
        self._duplicate_suppression = duplicate_suppression_enabled

    async def handle(self, payload: dict[str, Any]) -> None:
        try:
            pop = int(payload.get(PAYLOAD_POP, 0))
        except (TypeError, ValueError):
            pop = 0
        precipitation_type = PrecipitationType.parse(payload.get(PAYLOAD_PRECIP_TYPE))

        if not await self._preferences.is_app_enabled():
            logger.info("App disabled, skipping notification")
            return

        if self._duplicate_suppression and await self._preferences.has_notified_today():
            logger.info("Already notified today, skipping duplicate")
            NOTIFICATIONS.labels(kind="precipitation", status="duplicate").inc()
            await self._preferences.clear_scheduled_alarm()
            return

        shown = await self._renderer.show_precipitation(pop, precipitation_type)
        NOTIFICATIONS.labels(kind="precipitation", status="shown" if shown else "not_shown").inc()
        logger.info("Precipitation notification rendered", shown=shown, pop=pop, type=precipitation_type.value)

        if shown:
            await self._preferences.mark_notification_shown()
        await self._preferences.clear_scheduled_alarm()
