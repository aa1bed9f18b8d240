"""Tests for forecast fetching and cache fallback."""

from datetime import date

import httpx
import pytest

from rainwake.weather.client import OpenMeteoClient, WeatherApiError
from rainwake.weather.repository import (
    STALE_CACHE_WARNING,
    FetchError,
    ForecastFailure,
    ForecastResult,
    WeatherRepository,
    classify_fetch_error,
)
from tests.fakes import SEOUL_CITY_HALL, FakeWeatherClient, make_response

TOMORROW = date(2026, 3, 11)
RESPONSE = make_response(TOMORROW, {6: 20, 7: 70, 8: 10})


def _request() -> httpx.Request:
    return httpx.Request("GET", "https://api.open-meteo.com/v1/forecast")


@pytest.mark.asyncio
async def test_fetch_saves_cache(forecast_cache, clock):
    client = FakeWeatherClient(RESPONSE)
    repository = WeatherRepository(client, forecast_cache, clock)

    result = await repository.get_forecast(SEOUL_CITY_HALL)

    assert isinstance(result, ForecastResult)
    assert result.from_cache is False
    assert result.forecast.date == TOMORROW
    assert result.forecast.max_pop_in_range(5, 9) == 70
    assert (await forecast_cache.get_valid()).response == RESPONSE


@pytest.mark.asyncio
async def test_valid_cache_short_circuits_fetch(forecast_cache, clock):
    await forecast_cache.save(RESPONSE)
    clock.advance(minutes=30)
    client = FakeWeatherClient(error=AssertionError("should not fetch"))
    repository = WeatherRepository(client, forecast_cache, clock)

    result = await repository.get_forecast(SEOUL_CITY_HALL, target_date=TOMORROW)

    assert result.from_cache is True
    assert result.age_minutes == 30
    assert result.warning is None
    assert client.calls == 0


@pytest.mark.asyncio
async def test_force_refresh_bypasses_valid_cache(forecast_cache, clock):
    await forecast_cache.save(make_response(TOMORROW, {7: 5}))
    client = FakeWeatherClient(RESPONSE)
    repository = WeatherRepository(client, forecast_cache, clock)

    result = await repository.get_forecast(SEOUL_CITY_HALL, force_refresh=True, target_date=TOMORROW)

    assert client.calls == 1
    assert result.from_cache is False
    assert result.forecast.max_pop_in_range(5, 9) == 70


@pytest.mark.asyncio
async def test_failed_fetch_falls_back_to_stale_cache(forecast_cache, clock):
    await forecast_cache.save(RESPONSE)
    clock.advance(hours=8)
    client = FakeWeatherClient(error=httpx.ConnectError("offline", request=_request()))
    repository = WeatherRepository(client, forecast_cache, clock)

    result = await repository.get_forecast(SEOUL_CITY_HALL, target_date=TOMORROW)

    assert isinstance(result, ForecastResult)
    assert result.from_cache is True
    assert result.age_minutes == 480
    assert result.warning == STALE_CACHE_WARNING


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (httpx.ConnectError("offline", request=_request()), FetchError.NETWORK),
        (httpx.ReadTimeout("slow", request=_request()), FetchError.NETWORK),
        (
            httpx.HTTPStatusError(
                "server error",
                request=_request(),
                response=httpx.Response(503, request=_request()),
            ),
            FetchError.API,
        ),
        (WeatherApiError("bad payload"), FetchError.API),
        (ValueError("boom"), FetchError.UNKNOWN),
    ],
)
async def test_failure_without_cache(forecast_cache, clock, error, kind):
    repository = WeatherRepository(FakeWeatherClient(error=error), forecast_cache, clock)

    result = await repository.get_forecast(SEOUL_CITY_HALL)

    assert isinstance(result, ForecastFailure)
    assert result.error == kind
    assert result.message
    assert classify_fetch_error(error) == kind


@pytest.mark.asyncio
async def test_cache_age_string(forecast_cache, clock):
    repository = WeatherRepository(FakeWeatherClient(RESPONSE), forecast_cache, clock)
    assert await repository.get_cache_age_string() is None

    await repository.get_forecast(SEOUL_CITY_HALL)
    clock.advance(minutes=75)

    assert await repository.get_cache_age_string() == "1 h 15 min"


def _client(settings, handler) -> OpenMeteoClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=settings.weather_base_url)
    return OpenMeteoClient(settings, client=http)


@pytest.mark.asyncio
async def test_client_requests_hourly_forecast(settings):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=RESPONSE.model_dump_json())

    client = _client(settings, handler)
    response = await client.fetch_hourly(37.5665, 126.978)
    await client.close()

    assert response == RESPONSE
    params = seen[0].url.params
    assert seen[0].url.path.endswith("/v1/forecast")
    assert params["latitude"] == "37.5665"
    assert params["hourly"] == "precipitation_probability,temperature_2m,weather_code"
    assert params["timezone"] == settings.timezone
    assert params["forecast_days"] == str(settings.forecast_days)


@pytest.mark.asyncio
async def test_client_error_payload(settings):
    client = _client(
        settings,
        lambda request: httpx.Response(200, json={"error": True, "reason": "Latitude out of range"}),
    )

    with pytest.raises(WeatherApiError, match="Latitude out of range"):
        await client.fetch_hourly(137.0, 0.0)


@pytest.mark.asyncio
async def test_client_http_error(settings):
    client = _client(settings, lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_hourly(37.5, 127.0)


@pytest.mark.asyncio
async def test_client_unexpected_payload(settings):
    client = _client(settings, lambda request: httpx.Response(200, json={"hello": "world"}))

    with pytest.raises(WeatherApiError):
        await client.fetch_hourly(37.5, 127.0)
