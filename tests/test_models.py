"""Tests for domain models."""

from datetime import date, datetime, time, timezone

import pytest
from pydantic import ValidationError

from rainwake.core.clock import from_millis, to_millis
from rainwake.models.forecast import DailyForecast, HourlyForecast, PrecipitationType
from rainwake.models.schedule import FailureReason, ScheduleInfo
from rainwake.models.settings import UserSettings, clamp_threshold
from rainwake.models.status import AppStatus, StatusInfo


def _forecast(entries: list[tuple[int, int, int | None]]) -> DailyForecast:
    return DailyForecast(
        date=date(2026, 3, 11),
        hourly_forecasts=[
            HourlyForecast(time=datetime(2026, 3, 11, hour), precipitation_probability=pop, weather_code=code)
            for hour, pop, code in entries
        ],
        fetched_at=datetime(2026, 3, 10, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (61, PrecipitationType.RAIN),
        (82, PrecipitationType.RAIN),
        (71, PrecipitationType.SNOW),
        (86, PrecipitationType.SNOW),
        (56, PrecipitationType.MIXED),
        (67, PrecipitationType.MIXED),
        (0, None),
        (3, None),
        (None, None),
    ],
)
def test_precipitation_type_from_weather_code(code, expected) -> None:
    assert PrecipitationType.from_weather_code(code) == expected


def test_precipitation_type_parse_defaults_to_rain() -> None:
    assert PrecipitationType.parse("SNOW") == PrecipitationType.SNOW
    assert PrecipitationType.parse("HAIL") == PrecipitationType.RAIN
    assert PrecipitationType.parse(None) == PrecipitationType.RAIN


def test_window_is_two_hours_around_notification_time() -> None:
    settings = UserSettings(notification_time=time(7, 30))
    assert (settings.pop_check_start_hour, settings.pop_check_end_hour) == (5, 9)

    early = UserSettings(notification_time=time(0, 15))
    assert (early.pop_check_start_hour, early.pop_check_end_hour) == (0, 2)

    late = UserSettings(notification_time=time(23, 0))
    assert (late.pop_check_start_hour, late.pop_check_end_hour) == (21, 23)


def test_window_end_hour_is_exclusive() -> None:
    forecast = _forecast([(4, 90, None), (5, 10, None), (8, 30, None), (9, 95, None)])

    assert forecast.max_pop_in_range(5, 9) == 30
    assert forecast.avg_pop_in_range(5, 9) == 20


def test_empty_window_yields_zero() -> None:
    forecast = _forecast([])

    assert forecast.max_pop_in_range(5, 9) == 0
    assert forecast.avg_pop_in_range(5, 9) == 0


def test_average_is_truncated() -> None:
    forecast = _forecast([(5, 10, None), (6, 11, None)])
    assert forecast.avg_pop_in_range(5, 9) == 10


@pytest.mark.parametrize(
    ("codes", "expected"),
    [
        ([None, None], PrecipitationType.RAIN),
        ([61, None], PrecipitationType.RAIN),
        ([71, 73], PrecipitationType.SNOW),
        ([61, 71], PrecipitationType.MIXED),
        ([61, 66], PrecipitationType.MIXED),
        ([3, 56], PrecipitationType.MIXED),
    ],
)
def test_dominant_precipitation_type(codes, expected) -> None:
    forecast = _forecast([(5, 50, codes[0]), (6, 50, codes[1]), (12, 50, 71)])
    assert forecast.dominant_precipitation_type(5, 9) == expected


def test_threshold_clamped_to_allowed_range() -> None:
    assert clamp_threshold(95) == 80
    assert clamp_threshold(-5) == 0
    assert clamp_threshold(40) == 40


def test_hourly_probability_bounds_are_validated() -> None:
    with pytest.raises(ValidationError):
        HourlyForecast(time=datetime(2026, 3, 11, 5), precipitation_probability=101)


def test_schedule_info_derived_values() -> None:
    target = datetime(2026, 3, 11, 7, 30, tzinfo=timezone.utc)
    info = ScheduleInfo(
        target_time_ms=to_millis(target),
        trigger_time_ms=to_millis(target) - 600_000,
        is_exact=False,
        buffer_applied=True,
        buffer_minutes=10,
        pop=70,
        precipitation_type=PrecipitationType.SNOW,
    )

    assert info.buffer_delta_ms == 600_000
    assert info.target_time == target
    diagnostic = info.to_diagnostic_string()
    assert "Alarm type: inexact" in diagnostic
    assert "Buffer: 10 min earlier" in diagnostic
    assert "Precipitation: 70% (SNOW)" in diagnostic


def test_millis_conversion_is_exact() -> None:
    millis = 1_773_186_600_123
    assert to_millis(from_millis(millis)) == millis


def test_failure_reason_messages() -> None:
    for reason in FailureReason:
        assert reason.to_user_message()


def test_app_status_codes() -> None:
    assert AppStatus.from_code("SCHED_EXACT") == AppStatus.SCHEDULED_EXACT
    assert AppStatus.from_code("nonsense") == AppStatus.UNKNOWN
    assert AppStatus.FETCH_FAILED_NETWORK.is_error
    assert not AppStatus.USING_CACHED_DATA.is_error
    assert AppStatus.INITIAL.requires_action
    assert not AppStatus.SCHEDULED_EXACT.requires_action


def test_status_info_messages() -> None:
    info = StatusInfo.no_rain(
        pop=20,
        threshold=40,
        location_name="Seoul",
        last_update=datetime(2026, 3, 10, tzinfo=timezone.utc),
    )

    assert info.user_message == "No rain expected"
    assert info.detail_message == "Precipitation 20% is below the threshold (40%)"

    scheduled = StatusInfo.scheduled(
        is_exact=True,
        scheduled_time=time(13, 5),
        pop=60,
        location_name=None,
        last_update=datetime(2026, 3, 10, tzinfo=timezone.utc),
    )
    assert scheduled.status == AppStatus.SCHEDULED_EXACT
    assert scheduled.detail_message == "Notification at 1:05 PM (precipitation 60%)"
