"""User-initiated weather refresh."""

from dataclasses import dataclass

from rainwake.core.logging import get_logger
from rainwake.engine.decision import WeatherDecisionEngine
from rainwake.models.decision import Cancelled, Scheduled
from rainwake.models.status import AppStatus
from rainwake.notification.policy import NotificationScheduleService
from rainwake.storage.preferences import PreferencesRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshSuccess:
    message: str
    is_scheduled: bool


@dataclass(frozen=True)
class RefreshFailed:
    message: str


RefreshResult = RefreshSuccess | RefreshFailed


class RefreshService:
    """Runs the full check-and-schedule flow on demand."""

    def __init__(
        self,
        engine: WeatherDecisionEngine,
        schedule_service: NotificationScheduleService,
        preferences: PreferencesRepository,
    ):
        self._engine = engine
        self._schedule_service = schedule_service
        self._preferences = preferences

    async def refresh(self) -> RefreshResult:
        await self._preferences.update_status(AppStatus.CHECKING)

        decision = await self._engine.decide(force_refresh=True)
        result = await self._schedule_service.apply(decision)
        logger.info("Manual refresh finished", result=type(result).__name__)

        if isinstance(result, Scheduled):
            return RefreshSuccess(f"Rain expected ({result.pop}%)", is_scheduled=True)
        if isinstance(result, Cancelled):
            return RefreshSuccess("No rain expected", is_scheduled=False)
        return RefreshFailed(result.reason)
