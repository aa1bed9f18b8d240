"""Wake-up capability used by the alarm scheduler."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger

logger = get_logger(__name__)

AlarmHandler = Callable[[dict[str, Any]], Awaitable[None]]


class AlarmPermissionError(Exception):
    """Exact wake-ups are not (or no longer) permitted."""


class AlarmCapability(ABC):
    """Abstract keyed wake-up facility.

    Arming a key replaces any alarm already armed under it.
    """

    @abstractmethod
    def can_schedule_exact(self) -> bool:
        """Return whether exact wake-ups are currently permitted."""
        pass

    @abstractmethod
    def arm_exact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        """Arm a wake-up at exactly when_ms.

        Raises:
            AlarmPermissionError: Exact wake-ups are not permitted
        """
        pass

    @abstractmethod
    def arm_inexact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        """Arm a wake-up at approximately when_ms."""
        pass

    @abstractmethod
    def cancel(self, key: str) -> None:
        """Cancel the alarm armed under key, if any."""
        pass


class LocalAlarmManager(AlarmCapability):
    """In-process alarms on the running asyncio loop.

    Each key holds at most one timer. When it fires, the handler registered
    for the key runs as a task with the alarm payload.
    """

    def __init__(self, clock: Clock, exact_allowed: bool = True):
        self._clock = clock
        self._exact_allowed = exact_allowed
        self._handlers: dict[str, AlarmHandler] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._armed_at: dict[str, tuple[int, bool]] = {}
        self._tasks: set[asyncio.Task] = set()

    def register(self, key: str, handler: AlarmHandler) -> None:
        """Route firings of key to handler."""
        self._handlers[key] = handler

    def set_exact_allowed(self, allowed: bool) -> None:
        """Grant or revoke exact wake-ups."""
        self._exact_allowed = allowed

    def can_schedule_exact(self) -> bool:
        return self._exact_allowed

    def arm_exact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        if not self._exact_allowed:
            raise AlarmPermissionError("Exact alarms are not permitted")
        self._arm(key, when_ms, payload, exact=True)

    def arm_inexact(self, key: str, when_ms: int, payload: dict[str, Any]) -> None:
        self._arm(key, when_ms, payload, exact=False)

    def cancel(self, key: str) -> None:
        timer = self._timers.pop(key, None)
        self._armed_at.pop(key, None)
        if timer is not None:
            timer.cancel()

    def armed(self, key: str) -> tuple[int, bool] | None:
        """Return (when_ms, exact) of the alarm armed under key."""
        return self._armed_at.get(key)

    def _arm(self, key: str, when_ms: int, payload: dict[str, Any], exact: bool) -> None:
        loop = asyncio.get_running_loop()
        self.cancel(key)
        delay = max(when_ms - self._clock.now_ms(), 0) / 1000
        self._timers[key] = loop.call_later(delay, self._fire, key, dict(payload))
        self._armed_at[key] = (when_ms, exact)
        logger.debug("Alarm armed", key=key, when_ms=when_ms, exact=exact, delay=delay)

    def _fire(self, key: str, payload: dict[str, Any]) -> None:
        self._timers.pop(key, None)
        self._armed_at.pop(key, None)
        handler = self._handlers.get(key)
        if handler is None:
            logger.warning("Alarm fired without a handler", key=key)
            return
        task = asyncio.get_running_loop().create_task(handler(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def shutdown(self) -> None:
        """Cancel all timers and wait for running handlers."""
        for key in list(self._timers):
            self.cancel(key)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
