"""Weather decision engine."""

from datetime import date

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger
from rainwake.location.chain import LocationFallbackChain, LocationFound, PermissionRequired
from rainwake.models.decision import DecisionError, ErrorType, NoRain, RainExpected, WeatherDecision
from rainwake.models.settings import UserSettings
from rainwake.observability.metrics import DECISIONS
from rainwake.storage.preferences import PreferencesRepository
from rainwake.weather.repository import FetchError, ForecastFailure, WeatherRepository

logger = get_logger(__name__)

_ERROR_KINDS = {
    FetchError.NETWORK: ErrorType.NETWORK,
    FetchError.API: ErrorType.API,
    FetchError.UNKNOWN: ErrorType.UNKNOWN,
}


class WeatherDecisionEngine:
    """Decides whether precipitation is expected around the notification time.

    Flow:
        1. Resolve a location through the fallback chain
        2. Pick the target date (today before the notification time, else tomorrow)
        3. Fetch the forecast of that date
        4. Take the maximum probability within the notification window
        5. Compare it against the user's threshold
    """

    def __init__(
        self,
        location_chain: LocationFallbackChain,
        weather_repository: WeatherRepository,
        preferences: PreferencesRepository,
        clock: Clock,
    ):
        self._location_chain = location_chain
        self._weather = weather_repository
        self._preferences = preferences
        self._clock = clock

    def target_date(self, settings: UserSettings) -> date:
        """The day whose notification the decision is for."""
        local_now = self._clock.local_now()
        if local_now.time() < settings.notification_time:
            return local_now.date()
        return self._clock.tomorrow()

    async def decide(self, force_refresh: bool = False) -> WeatherDecision:
        """Run the decision pipeline.

        Args:
            force_refresh: Bypass the valid-cache short circuit

        Returns:
            RainExpected, NoRain, or DecisionError
        """
        located = await self._location_chain.resolve()
        if not isinstance(located, LocationFound):
            if isinstance(located, PermissionRequired):
                message = "Location permission is required"
            else:
                message = "Set a location manually"
            DECISIONS.labels(outcome="error").inc()
            logger.warning("Location unavailable", result=type(located).__name__)
            return DecisionError(ErrorType.LOCATION, message)
        location = located.location

        settings = await self._preferences.get_settings()
        target_date = self.target_date(settings)

        result = await self._weather.get_forecast(location, force_refresh=force_refresh, target_date=target_date)
        if isinstance(result, ForecastFailure):
            DECISIONS.labels(outcome="error").inc()
            return DecisionError(_ERROR_KINDS[result.error], result.message)

        start_hour = settings.pop_check_start_hour
        end_hour = settings.pop_check_end_hour
        max_pop = result.forecast.max_pop_in_range(start_hour, end_hour)
        fetched_at = self._clock.now()

        logger.info(
            "Forecast evaluated",
            target_date=target_date.isoformat(),
            window=f"{start_hour}-{end_hour}",
            max_pop=max_pop,
            threshold=settings.pop_threshold,
            from_cache=result.from_cache,
            level=located.level.value,
        )

        if max_pop >= settings.pop_threshold:
            DECISIONS.labels(outcome="rain_expected").inc()
            return RainExpected(
                max_pop=max_pop,
                location=location,
                notification_time=settings.notification_time,
                fetched_at=fetched_at,
                precipitation_type=result.forecast.dominant_precipitation_type(start_hour, end_hour),
            )

        DECISIONS.labels(outcome="no_rain").inc()
        return NoRain(
            max_pop=max_pop,
            threshold=settings.pop_threshold,
            location=location,
            fetched_at=fetched_at,
        )
