"""Tests for the structlog processors."""

from datetime import datetime

from rainwake.core.clock import to_millis
from rainwake.core.logging import LocalTimeRenderer, add_app_name
from tests.fakes import SEOUL


def test_local_time_renderer_adds_wall_clock_twin() -> None:
    trigger = datetime(2026, 3, 11, 7, 20, tzinfo=SEOUL)
    renderer = LocalTimeRenderer(SEOUL)

    event = renderer(None, "info", {"event": "Alarm armed", "trigger_time_ms": to_millis(trigger)})

    assert event["trigger_time"] == "2026-03-11 07:20"
    assert event["trigger_time_ms"] == to_millis(trigger)


def test_local_time_renderer_leaves_durations_alone() -> None:
    renderer = LocalTimeRenderer(SEOUL)

    event = renderer(None, "info", {"event": "Cache hit", "age_ms": 120_000})

    assert event == {"event": "Cache hit", "age_ms": 120_000}


def test_add_app_name_keeps_explicit_value() -> None:
    processor = add_app_name("rainwake")

    assert processor(None, "info", {"event": "x"})["app"] == "rainwake"
    assert processor(None, "info", {"event": "x", "app": "other"})["app"] == "other"
