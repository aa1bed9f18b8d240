"""Explicit wiring of every component."""

from dataclasses import dataclass

from redis.asyncio import Redis

from rainwake.core.clock import Clock
from rainwake.core.config import Settings
from rainwake.core.logging import get_logger
from rainwake.engine.decision import WeatherDecisionEngine
from rainwake.location.chain import LocationFallbackChain
from rainwake.location.device import DeviceLocationProvider
from rainwake.location.provider import LocationProvider
from rainwake.notification.policy import NotificationScheduleService
from rainwake.notification.refresh import RefreshService
from rainwake.notification.renderer import NotificationRenderer
from rainwake.notification.webhook import WebhookNotificationRenderer
from rainwake.orchestrator.jobs import WeatherCheckJob
from rainwake.orchestrator.scheduler import RecheckScheduler
from rainwake.orchestrator.settings import SettingsService
from rainwake.receivers.alarm import AlarmReceiver
from rainwake.receivers.precheck import PreCheckReceiver
from rainwake.receivers.system_events import SystemEvent, SystemEventReceiver
from rainwake.scheduler.alarm import ALARM_KEY, PRE_CHECK_KEY, AlarmScheduler
from rainwake.scheduler.capability import AlarmCapability, LocalAlarmManager
from rainwake.storage.forecast_cache import ForecastCache
from rainwake.storage.kv import KeyValueStore
from rainwake.storage.preferences import PreferencesRepository
from rainwake.weather.client import OpenMeteoClient
from rainwake.weather.repository import WeatherRepository

logger = get_logger(__name__)


@dataclass
class Services:
    """Every long-lived component of one process."""

    settings: Settings
    clock: Clock
    preferences: PreferencesRepository
    forecast_cache: ForecastCache
    weather_client: OpenMeteoClient
    weather_repository: WeatherRepository
    location_chain: LocationFallbackChain
    engine: WeatherDecisionEngine
    capability: AlarmCapability
    alarm_scheduler: AlarmScheduler
    renderer: NotificationRenderer
    schedule_service: NotificationScheduleService
    refresh_service: RefreshService
    recheck_job: WeatherCheckJob
    recheck_scheduler: RecheckScheduler
    settings_service: SettingsService
    alarm_receiver: AlarmReceiver
    pre_check_receiver: PreCheckReceiver
    system_event_receiver: SystemEventReceiver

    async def start(self) -> None:
        """Start background scheduling and replay boot recovery."""
        self.recheck_scheduler.start()
        pending = self.system_event_receiver.dispatch(SystemEvent.BOOT_COMPLETED)
        await pending.wait()
        logger.info("Services started")

    async def stop(self) -> None:
        await self.recheck_scheduler.stop()
        if isinstance(self.capability, LocalAlarmManager):
            await self.capability.shutdown()
        await self.weather_client.close()
        await self.renderer.close()
        logger.info("Services stopped")


def build_services(
    settings: Settings,
    redis: Redis | None = None,
    clock: Clock | None = None,
    capability: AlarmCapability | None = None,
    location_provider: LocationProvider | None = None,
    weather_client: OpenMeteoClient | None = None,
    renderer: NotificationRenderer | None = None,
) -> Services:
    """Build the component graph.

    Args:
        settings: Application settings
        redis: Redis client, defaults to the shared pool
        clock: Clock, defaults to the system clock in the reference timezone
        capability: Alarm capability, defaults to a LocalAlarmManager
        location_provider: Defaults to the configured device provider
        weather_client: Defaults to an Open-Meteo client
        renderer: Defaults to the webhook renderer

    Returns:
        Wired services
    """
    clock = clock or Clock(settings.tz)
    store = KeyValueStore(redis)
    preferences = PreferencesRepository(store, clock)

    forecast_cache = ForecastCache(store, clock, ttl_hours=settings.forecast_cache_ttl_hours)
    weather_client = weather_client or OpenMeteoClient(settings)
    weather_repository = WeatherRepository(weather_client, forecast_cache, clock)

    location_chain = LocationFallbackChain(
        location_provider or DeviceLocationProvider(settings),
        preferences,
        timeout=settings.location_timeout_seconds,
    )
    engine = WeatherDecisionEngine(location_chain, weather_repository, preferences, clock)

    capability = capability or LocalAlarmManager(clock, exact_allowed=settings.exact_alarms_allowed)
    alarm_scheduler = AlarmScheduler(
        capability,
        preferences,
        clock,
        inexact_buffer_minutes=settings.inexact_buffer_minutes,
        pre_check_offset_minutes=settings.pre_check_offset_minutes,
    )

    renderer = renderer or WebhookNotificationRenderer(settings)
    schedule_service = NotificationScheduleService(
        alarm_scheduler,
        preferences,
        renderer,
        failure_threshold=settings.failure_threshold,
    )
    refresh_service = RefreshService(engine, schedule_service, preferences)

    recheck_job = WeatherCheckJob(
        engine,
        schedule_service,
        alarm_scheduler,
        max_attempts=settings.recheck_max_attempts,
    )
    recheck_scheduler = RecheckScheduler(
        recheck_job,
        clock,
        settings.recheck_times,
        retry_base_delay=settings.recheck_retry_base_delay,
    )
    settings_service = SettingsService(preferences, recheck_scheduler, alarm_scheduler)

    alarm_receiver = AlarmReceiver(
        preferences,
        renderer,
        duplicate_suppression_enabled=settings.duplicate_suppression_enabled,
    )
    pre_check_receiver = PreCheckReceiver(engine, schedule_service, alarm_scheduler, preferences)
    system_event_receiver = SystemEventReceiver(recheck_scheduler, alarm_scheduler, preferences)

    if isinstance(capability, LocalAlarmManager):
        capability.register(ALARM_KEY, alarm_receiver)
        capability.register(PRE_CHECK_KEY, pre_check_receiver)

    return Services(
        settings=settings,
        clock=clock,
        preferences=preferences,
        forecast_cache=forecast_cache,
        weather_client=weather_client,
        weather_repository=weather_repository,
        location_chain=location_chain,
        engine=engine,
        capability=capability,
        alarm_scheduler=alarm_scheduler,
        renderer=renderer,
        schedule_service=schedule_service,
        refresh_service=refresh_service,
        recheck_job=recheck_job,
        recheck_scheduler=recheck_scheduler,
        settings_service=settings_service,
        alarm_receiver=alarm_receiver,
        pre_check_receiver=pre_check_receiver,
        system_event_receiver=system_event_receiver,
    )
