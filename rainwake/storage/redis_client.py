"""Redis client management."""

import redis.asyncio as redis
from redis.asyncio import Redis

from rainwake.core.config import get_settings

# Global connection pool
_pool: redis.ConnectionPool | None = None


async def init_redis_pool() -> None:
    """Initialize Redis connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            decode_responses=True,
            max_connections=10,
        )


async def close_redis_pool() -> None:
    """Close Redis connection pool."""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None


def get_redis() -> Redis:
    """Get Redis client from pool.

    Returns:
        Redis client instance

    Raises:
        RuntimeError: If pool not initialized
    """
    if _pool is None:
        raise RuntimeError("Redis pool not initialized. Call init_redis_pool() first.")
    return redis.Redis(connection_pool=_pool)


class RedisKeys:
    """Redis key patterns."""

    PREFERENCES = "rainwake:prefs"


class PrefKeys:
    """Field names inside the preferences hash."""

    # User settings
    NOTIFICATION_TIME_MINUTES = "notification_time_minutes"
    POP_THRESHOLD = "pop_threshold"
    IS_ENABLED = "is_enabled"
    MANUAL_CITY_NAME = "manual_city_name"
    MANUAL_LATITUDE = "manual_latitude"
    MANUAL_LONGITUDE = "manual_longitude"

    # Status snapshot
    LAST_STATUS_CODE = "last_status_code"
    LAST_CALCULATED_POP = "last_calculated_pop"
    LAST_LOCATION_NAME = "last_location_name"
    LAST_UPDATE_TIME = "last_update_time"

    # Scheduled alarm, as actually armed
    SCHEDULED_ALARM_TARGET_TIME = "scheduled_alarm_target_time"
    SCHEDULED_ALARM_TRIGGER_TIME = "scheduled_alarm_trigger_time"
    SCHEDULED_ALARM_IS_EXACT = "scheduled_alarm_is_exact"
    SCHEDULED_ALARM_BUFFER_APPLIED = "scheduled_alarm_buffer_applied"
    SCHEDULED_ALARM_BUFFER_MINUTES = "scheduled_alarm_buffer_minutes"
    SCHEDULED_ALARM_POP = "scheduled_alarm_pop"
    SCHEDULED_ALARM_PRECIP_TYPE = "scheduled_alarm_precip_type"

    # Single-field record written by older releases
    LEGACY_SCHEDULED_ALARM_TIME = "scheduled_alarm_time"

    PRE_CHECK_ALARM_TIME = "pre_check_alarm_time"

    # Duplicate suppression
    LAST_NOTIFICATION_DATE = "last_notification_date"

    # Forecast cache
    CACHED_FORECAST_JSON = "cached_forecast_json"
    CACHE_SAVED_TIME = "cache_saved_time"

    # Failures
    CONSECUTIVE_FAILURES = "consecutive_failures"
    LAST_FAILURE_DATE = "last_failure_date"

    SCHEDULED_ALARM_FIELDS = (
        SCHEDULED_ALARM_TARGET_TIME,
        SCHEDULED_ALARM_TRIGGER_TIME,
        SCHEDULED_ALARM_IS_EXACT,
        SCHEDULED_ALARM_BUFFER_APPLIED,
        SCHEDULED_ALARM_BUFFER_MINUTES,
        SCHEDULED_ALARM_POP,
        SCHEDULED_ALARM_PRECIP_TYPE,
        LEGACY_SCHEDULED_ALARM_TIME,
    )
