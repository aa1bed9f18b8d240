"""Durable user settings, status snapshot and alarm schedule record."""

from datetime import time

from rainwake.core.clock import Clock, from_millis
from rainwake.core.logging import get_logger
from rainwake.models.forecast import PrecipitationType
from rainwake.models.schedule import ScheduleInfo
from rainwake.models.settings import (
    DEFAULT_NOTIFICATION_TIME,
    DEFAULT_POP_THRESHOLD,
    ManualLocation,
    UserSettings,
    clamp_threshold,
)
from rainwake.models.status import AppStatus, StatusInfo
from rainwake.storage.kv import KeyValueStore, parse_bool, parse_float, parse_int
from rainwake.storage.redis_client import PrefKeys

logger = get_logger(__name__)

_DEFAULT_TIME_MINUTES = DEFAULT_NOTIFICATION_TIME.hour * 60 + DEFAULT_NOTIFICATION_TIME.minute


def _time_from_minutes(minutes: int | None) -> time:
    if minutes is None:
        minutes = _DEFAULT_TIME_MINUTES
    return time(minutes // 60, minutes % 60)


class PreferencesRepository:
    """Repository over the preferences hash.

    Every multi-field write goes through one `KeyValueStore.edit()` so a crash
    never leaves a half-written schedule record behind.
    """

    def __init__(self, store: KeyValueStore, clock: Clock):
        self._store = store
        self._clock = clock

    # ----- user settings -----

    async def get_settings(self) -> UserSettings:
        """Read the current user settings snapshot."""
        prefs = await self._store.snapshot()
        return self._settings_from(prefs)

    @staticmethod
    def _settings_from(prefs: dict[str, str]) -> UserSettings:
        manual_location = None
        city_name = prefs.get(PrefKeys.MANUAL_CITY_NAME)
        latitude = parse_float(prefs.get(PrefKeys.MANUAL_LATITUDE))
        longitude = parse_float(prefs.get(PrefKeys.MANUAL_LONGITUDE))
        if city_name and latitude is not None and longitude is not None:
            manual_location = ManualLocation(city_name=city_name, latitude=latitude, longitude=longitude)

        threshold = parse_int(prefs.get(PrefKeys.POP_THRESHOLD))
        enabled = parse_bool(prefs.get(PrefKeys.IS_ENABLED))
        return UserSettings(
            notification_time=_time_from_minutes(parse_int(prefs.get(PrefKeys.NOTIFICATION_TIME_MINUTES))),
            pop_threshold=DEFAULT_POP_THRESHOLD if threshold is None else threshold,
            is_enabled=True if enabled is None else enabled,
            manual_location=manual_location,
        )

    async def update_notification_time(self, value: time) -> None:
        await self._store.set(PrefKeys.NOTIFICATION_TIME_MINUTES, value.hour * 60 + value.minute)

    async def update_pop_threshold(self, threshold: int) -> None:
        """Store the threshold clamped to the allowed range."""
        await self._store.set(PrefKeys.POP_THRESHOLD, clamp_threshold(threshold))

    async def update_enabled(self, enabled: bool) -> None:
        await self._store.set(PrefKeys.IS_ENABLED, enabled)

    async def update_manual_location(self, location: ManualLocation | None) -> None:
        """Store a manual location, or clear it when None."""
        async with self._store.edit() as e:
            if location is not None:
                e.set(PrefKeys.MANUAL_CITY_NAME, location.city_name)
                e.set(PrefKeys.MANUAL_LATITUDE, location.latitude)
                e.set(PrefKeys.MANUAL_LONGITUDE, location.longitude)
            else:
                e.remove(PrefKeys.MANUAL_CITY_NAME)
                e.remove(PrefKeys.MANUAL_LATITUDE)
                e.remove(PrefKeys.MANUAL_LONGITUDE)

    async def is_app_enabled(self) -> bool:
        enabled = await self._store.get_bool(PrefKeys.IS_ENABLED)
        return True if enabled is None else enabled

    # ----- status -----

    async def update_status(
        self,
        status: AppStatus,
        pop: int | None = None,
        location_name: str | None = None,
    ) -> None:
        """Record the latest status; pop and location are kept when omitted."""
        async with self._store.edit() as e:
            e.set(PrefKeys.LAST_STATUS_CODE, status.code)
            e.set(PrefKeys.LAST_UPDATE_TIME, self._clock.now_ms())
            if pop is not None:
                e.set(PrefKeys.LAST_CALCULATED_POP, pop)
            if location_name is not None:
                e.set(PrefKeys.LAST_LOCATION_NAME, location_name)

    async def get_status(self) -> StatusInfo:
        """Build the status snapshot shown to clients."""
        prefs = await self._store.snapshot()
        code = prefs.get(PrefKeys.LAST_STATUS_CODE)
        status = AppStatus.from_code(code) if code is not None else AppStatus.INITIAL

        has_schedule = (
            PrefKeys.SCHEDULED_ALARM_TARGET_TIME in prefs
            or PrefKeys.LEGACY_SCHEDULED_ALARM_TIME in prefs
        )
        settings = self._settings_from(prefs)
        last_update = parse_int(prefs.get(PrefKeys.LAST_UPDATE_TIME))
        return StatusInfo(
            status=status,
            scheduled_time=settings.notification_time if has_schedule else None,
            pop=parse_int(prefs.get(PrefKeys.LAST_CALCULATED_POP)),
            threshold=settings.pop_threshold,
            location_name=prefs.get(PrefKeys.LAST_LOCATION_NAME),
            last_update_time=from_millis(last_update) if last_update is not None else None,
        )

    # ----- alarm schedule record -----

    async def save_scheduled_alarm(self, info: ScheduleInfo) -> None:
        """Persist what was actually armed, replacing any previous record.

        Args:
            info: Outcome returned by the alarm scheduler
        """
        async with self._store.edit() as e:
            e.set(PrefKeys.SCHEDULED_ALARM_TARGET_TIME, info.target_time_ms)
            e.set(PrefKeys.SCHEDULED_ALARM_TRIGGER_TIME, info.trigger_time_ms)
            e.set(PrefKeys.SCHEDULED_ALARM_IS_EXACT, info.is_exact)
            e.set(PrefKeys.SCHEDULED_ALARM_BUFFER_APPLIED, info.buffer_applied)
            e.set(PrefKeys.SCHEDULED_ALARM_BUFFER_MINUTES, info.buffer_minutes)
            e.set(PrefKeys.SCHEDULED_ALARM_POP, info.pop)
            e.set(PrefKeys.SCHEDULED_ALARM_PRECIP_TYPE, info.precipitation_type.value)
            # Older releases only read this field
            e.set(PrefKeys.LEGACY_SCHEDULED_ALARM_TIME, info.target_time_ms)

    async def get_scheduled_alarm_info(self) -> ScheduleInfo | None:
        """Read the schedule record, upgrading a legacy one in place.

        Elapsed records are returned as-is; recovery decides what to do
        with them.

        Returns:
            The stored record, or None when nothing is scheduled
        """
        prefs = await self._store.snapshot()
        target = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_TARGET_TIME))
        pop = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_POP)) or 0

        if target is None:
            legacy_target = parse_int(prefs.get(PrefKeys.LEGACY_SCHEDULED_ALARM_TIME))
            if legacy_target is None:
                return None
            info = ScheduleInfo(
                target_time_ms=legacy_target,
                trigger_time_ms=legacy_target,
                is_exact=True,
                buffer_applied=False,
                buffer_minutes=0,
                pop=pop,
            )
            await self.save_scheduled_alarm(info)
            logger.info("Migrated legacy schedule record", target_time_ms=legacy_target)
            return info

        trigger = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_TRIGGER_TIME))
        is_exact = parse_bool(prefs.get(PrefKeys.SCHEDULED_ALARM_IS_EXACT))
        buffer_applied = parse_bool(prefs.get(PrefKeys.SCHEDULED_ALARM_BUFFER_APPLIED))
        return ScheduleInfo(
            target_time_ms=target,
            trigger_time_ms=target if trigger is None else trigger,
            is_exact=True if is_exact is None else is_exact,
            buffer_applied=bool(buffer_applied),
            buffer_minutes=parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_BUFFER_MINUTES)) or 0,
            pop=pop,
            precipitation_type=PrecipitationType.parse(prefs.get(PrefKeys.SCHEDULED_ALARM_PRECIP_TYPE)),
        )

    async def clear_scheduled_alarm(self) -> None:
        """Delete the schedule record (new and legacy fields) and reset status."""
        async with self._store.edit() as e:
            for field in PrefKeys.SCHEDULED_ALARM_FIELDS:
                e.remove(field)
            e.set(PrefKeys.LAST_STATUS_CODE, AppStatus.INITIAL.code)

    # ----- pre-check alarm -----

    async def save_pre_check_time(self, millis: int) -> None:
        await self._store.set(PrefKeys.PRE_CHECK_ALARM_TIME, millis)

    async def get_pre_check_time(self) -> int | None:
        return await self._store.get_long(PrefKeys.PRE_CHECK_ALARM_TIME)

    async def clear_pre_check_time(self) -> None:
        await self._store.remove(PrefKeys.PRE_CHECK_ALARM_TIME)

    # ----- duplicate suppression -----

    async def has_notified_today(self) -> bool:
        last_date = await self._store.get_str(PrefKeys.LAST_NOTIFICATION_DATE)
        return last_date == self._clock.today_string()

    async def mark_notification_shown(self) -> None:
        await self._store.set(PrefKeys.LAST_NOTIFICATION_DATE, self._clock.today_string())

    # ----- failure counter -----

    async def increment_failure_count(self) -> int:
        """Count one more failure for today.

        The counter restarts at 1 on the first failure of a new day.

        Returns:
            The updated consecutive failure count
        """
        today = self._clock.today_string()
        prefs = await self._store.snapshot()
        if prefs.get(PrefKeys.LAST_FAILURE_DATE) != today:
            count = 1
        else:
            count = (parse_int(prefs.get(PrefKeys.CONSECUTIVE_FAILURES)) or 0) + 1

        async with self._store.edit() as e:
            e.set(PrefKeys.CONSECUTIVE_FAILURES, count)
            e.set(PrefKeys.LAST_FAILURE_DATE, today)
        return count

    async def reset_failure_count(self) -> None:
        await self._store.set(PrefKeys.CONSECUTIVE_FAILURES, 0)

    async def get_failure_count(self) -> int:
        return await self._store.get_int(PrefKeys.CONSECUTIVE_FAILURES) or 0

    # ----- diagnostics -----

    async def get_diagnostic_info(self) -> str:
        """Dump every stored value as plain text for troubleshooting."""
        prefs = await self._store.snapshot()
        settings = self._settings_from(prefs)
        fmt = self._clock.format_ms
        lines = ["=== rainwake diagnostics ===", ""]

        lines.append("[Notification settings]")
        notification_time = settings.notification_time
        lines.append(f"Notification time: {notification_time.hour}:{notification_time.minute:02d}")
        lines.append(f"Threshold: {settings.pop_threshold}%")
        lines.append(f"Enabled: {str(settings.is_enabled).lower()}")
        lines.append("")

        lines.append("[Location settings]")
        manual = settings.manual_location
        if manual is not None:
            lines.append(f"Manual location: {manual.city_name}")
            lines.append(f"Latitude: {manual.latitude}")
            lines.append(f"Longitude: {manual.longitude}")
        else:
            lines.append("Location: device (automatic)")
        lines.append("")

        lines.append("[Alarm schedule]")
        target = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_TARGET_TIME))
        if target is not None:
            trigger = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_TRIGGER_TIME))
            is_exact = parse_bool(prefs.get(PrefKeys.SCHEDULED_ALARM_IS_EXACT))
            is_exact = True if is_exact is None else is_exact
            buffer_applied = bool(parse_bool(prefs.get(PrefKeys.SCHEDULED_ALARM_BUFFER_APPLIED)))
            buffer_minutes = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_BUFFER_MINUTES)) or 0
            pop = parse_int(prefs.get(PrefKeys.SCHEDULED_ALARM_POP)) or 0

            lines.append(f"Target time (shown): {fmt(target)}")
            lines.append(f"Trigger time (armed): {fmt(target if trigger is None else trigger)}")
            lines.append(f"Alarm type: {'exact' if is_exact else 'inexact'}")
            lines.append(f"Buffer applied: {f'yes ({buffer_minutes} min earlier)' if buffer_applied else 'no'}")
            lines.append(f"Precipitation: {pop}%")
            if not is_exact:
                lines.append("")
                lines.append("Inexact alarms may be delayed by up to 15 minutes")
        else:
            lines.append("Nothing scheduled")

        pre_check = parse_int(prefs.get(PrefKeys.PRE_CHECK_ALARM_TIME))
        if pre_check is not None:
            lines.append(f"Pre-check: {fmt(pre_check)}")
        lines.append("")

        lines.append("[Last status]")
        lines.append(f"Status code: {prefs.get(PrefKeys.LAST_STATUS_CODE, 'none')}")
        lines.append(f"Last pop: {prefs.get(PrefKeys.LAST_CALCULATED_POP, 'none')}")
        lines.append(f"Last location: {prefs.get(PrefKeys.LAST_LOCATION_NAME, 'none')}")
        last_update = parse_int(prefs.get(PrefKeys.LAST_UPDATE_TIME))
        if last_update is not None:
            lines.append(f"Last update: {fmt(last_update)}")
        lines.append("")

        lines.append("[Notification history]")
        lines.append(f"Last notification date: {prefs.get(PrefKeys.LAST_NOTIFICATION_DATE, 'none')}")
        lines.append(f"Consecutive failures: {prefs.get(PrefKeys.CONSECUTIVE_FAILURES, '0')}")
        lines.append(f"Last failure date: {prefs.get(PrefKeys.LAST_FAILURE_DATE, 'none')}")

        return "\n".join(lines) + "\n"
