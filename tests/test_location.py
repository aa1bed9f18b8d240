"""Tests for location resolution."""

import asyncio
import threading

import pytest

from rainwake.core.config import Settings
from rainwake.location.callbacks import await_location_callback
from rainwake.location.chain import (
    FallbackLevel,
    LocationFallbackChain,
    LocationFound,
    ManualSettingRequired,
    PermissionRequired,
)
from rainwake.location.device import DeviceLocationProvider
from rainwake.models.forecast import Location, LocationSource
from rainwake.models.settings import ManualLocation
from tests.fakes import SEOUL_CITY_HALL, FakeLocationProvider

BUSAN = Location(latitude=35.18, longitude=129.08, name="Busan")


# ----- callback adapter -----


@pytest.mark.asyncio
async def test_callback_success():
    def start(on_success, on_failure, token):
        on_success(SEOUL_CITY_HALL)

    assert await await_location_callback(start, timeout=1) == SEOUL_CITY_HALL


@pytest.mark.asyncio
async def test_callback_from_another_thread():
    def start(on_success, on_failure, token):
        threading.Thread(target=on_success, args=(BUSAN,)).start()

    assert await await_location_callback(start, timeout=1) == BUSAN


@pytest.mark.asyncio
async def test_callback_failure_yields_none():
    def start(on_success, on_failure, token):
        on_failure(RuntimeError("no fix"))

    assert await await_location_callback(start, timeout=1) is None


@pytest.mark.asyncio
async def test_first_callback_wins():
    def start(on_success, on_failure, token):
        on_success(SEOUL_CITY_HALL)
        on_failure(RuntimeError("late"))
        on_success(BUSAN)

    assert await await_location_callback(start, timeout=1) == SEOUL_CITY_HALL


@pytest.mark.asyncio
async def test_timeout_fires_token_and_ignores_late_callback():
    captured = {}

    def start(on_success, on_failure, token):
        captured["on_success"] = on_success
        captured["token"] = token

    assert await await_location_callback(start, timeout=0.05) is None
    assert captured["token"].is_cancelled

    captured["on_success"](SEOUL_CITY_HALL)
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_permission_error_yields_none():
    def start(on_success, on_failure, token):
        raise PermissionError("denied")

    assert await await_location_callback(start, timeout=1) is None


@pytest.mark.asyncio
async def test_caller_cancellation_fires_token():
    captured = {}
    cancelled = []

    def start(on_success, on_failure, token):
        captured["token"] = token
        token.on_cancel(lambda: cancelled.append(True))

    task = asyncio.create_task(await_location_callback(start, timeout=10))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert captured["token"].is_cancelled
    assert cancelled == [True]


# ----- fallback chain -----


@pytest.mark.asyncio
async def test_chain_prefers_live_fix(preferences):
    provider = FakeLocationProvider(current=SEOUL_CITY_HALL, last_known=BUSAN)

    result = await LocationFallbackChain(provider, preferences).resolve()

    assert result == LocationFound(SEOUL_CITY_HALL, FallbackLevel.GPS_CURRENT)


@pytest.mark.asyncio
async def test_chain_falls_back_to_last_known(preferences):
    provider = FakeLocationProvider(last_known=BUSAN)

    result = await LocationFallbackChain(provider, preferences).resolve()

    assert result == LocationFound(BUSAN, FallbackLevel.GPS_CACHED)
    assert provider.current_calls == 1


@pytest.mark.asyncio
async def test_chain_times_out_live_fix(preferences):
    class SlowProvider(FakeLocationProvider):
        async def get_current_location(self):
            await asyncio.sleep(10)

    provider = SlowProvider(last_known=BUSAN)

    result = await LocationFallbackChain(provider, preferences, timeout=0.05).resolve()

    assert result.level == FallbackLevel.GPS_CACHED


@pytest.mark.asyncio
async def test_chain_uses_manual_location(preferences):
    await preferences.update_manual_location(ManualLocation(city_name="Jeju", latitude=33.5, longitude=126.53))
    provider = FakeLocationProvider(permission=False)

    result = await LocationFallbackChain(provider, preferences).resolve()

    assert result.level == FallbackLevel.MANUAL
    assert result.location.name == "Jeju"
    assert result.location.source == LocationSource.MANUAL


@pytest.mark.asyncio
async def test_chain_without_permission(preferences):
    result = await LocationFallbackChain(FakeLocationProvider(permission=False), preferences).resolve()

    assert isinstance(result, PermissionRequired)


@pytest.mark.asyncio
async def test_chain_with_permission_but_no_fix(preferences):
    result = await LocationFallbackChain(FakeLocationProvider(permission=True), preferences).resolve()

    assert isinstance(result, ManualSettingRequired)


# ----- device provider -----


@pytest.mark.asyncio
async def test_device_provider_without_coordinates():
    provider = DeviceLocationProvider(Settings(_env_file=None))

    assert provider.has_location_permission() is False
    assert await provider.get_current_location() is None
    assert await provider.get_last_known_location() is None


@pytest.mark.asyncio
async def test_device_provider_reports_and_remembers_fix():
    settings = Settings(_env_file=None, device_latitude=37.5665, device_longitude=126.978)

    async def reverse_geocode(latitude, longitude):
        return "Jung-gu"

    provider = DeviceLocationProvider(settings, reverse_geocode=reverse_geocode)

    assert await provider.get_last_known_location() is None
    current = await provider.get_current_location()
    assert current.name == "Jung-gu"
    assert current.source == LocationSource.GPS

    last_known = await provider.get_last_known_location()
    assert last_known.source == LocationSource.CACHED
    assert last_known.latitude == 37.5665


@pytest.mark.asyncio
async def test_device_provider_geocoding_failure_keeps_fix():
    settings = Settings(
        _env_file=None,
        device_latitude=37.5665,
        device_longitude=126.978,
        device_location_name="Seoul",
    )

    async def reverse_geocode(latitude, longitude):
        raise RuntimeError("geocoder down")

    current = await DeviceLocationProvider(settings, reverse_geocode=reverse_geocode).get_current_location()
    assert current.name is None

    configured = await DeviceLocationProvider(settings).get_current_location()
    assert configured.name == "Seoul"
