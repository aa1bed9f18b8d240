"""Pytest configuration and fixtures."""

from datetime import datetime
from typing import AsyncIterator

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer

from rainwake.core.config import Settings
from rainwake.storage.forecast_cache import ForecastCache
from rainwake.storage.kv import KeyValueStore
from rainwake.storage.preferences import PreferencesRepository
from tests.fakes import FakeAlarmCapability, FakeRenderer, FrozenClock


@pytest_asyncio.fixture
async def redis() -> AsyncIterator[FakeAsyncRedis]:
    """In-memory Redis, isolated per test."""
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def clock() -> FrozenClock:
    """Tuesday 2026-03-10 20:00 in Seoul."""
    return FrozenClock(datetime(2026, 3, 10, 20, 0))


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def store(redis) -> KeyValueStore:
    return KeyValueStore(redis)


@pytest.fixture
def preferences(store, clock) -> PreferencesRepository:
    return PreferencesRepository(store, clock)


@pytest.fixture
def forecast_cache(store, clock) -> ForecastCache:
    return ForecastCache(store, clock, ttl_hours=6)


@pytest.fixture
def capability() -> FakeAlarmCapability:
    return FakeAlarmCapability()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()
