"""API dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from rainwake.container import Services
from rainwake.notification.refresh import RefreshService
from rainwake.orchestrator.settings import SettingsService
from rainwake.scheduler.alarm import AlarmScheduler
from rainwake.storage.forecast_cache import ForecastCache
from rainwake.storage.preferences import PreferencesRepository


def get_services(request: Request) -> Services:
    """Get the services built at startup."""
    return request.app.state.services


ServicesDep = Annotated[Services, Depends(get_services)]


def get_preferences(services: ServicesDep) -> PreferencesRepository:
    return services.preferences


def get_forecast_cache(services: ServicesDep) -> ForecastCache:
    return services.forecast_cache


def get_alarm_scheduler(services: ServicesDep) -> AlarmScheduler:
    return services.alarm_scheduler


def get_refresh_service(services: ServicesDep) -> RefreshService:
    return services.refresh_service


def get_settings_service(services: ServicesDep) -> SettingsService:
    return services.settings_service


# Type aliases for dependency injection
PreferencesDep = Annotated[PreferencesRepository, Depends(get_preferences)]
ForecastCacheDep = Annotated[ForecastCache, Depends(get_forecast_cache)]
AlarmSchedulerDep = Annotated[AlarmScheduler, Depends(get_alarm_scheduler)]
RefreshServiceDep = Annotated[RefreshService, Depends(get_refresh_service)]
SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
