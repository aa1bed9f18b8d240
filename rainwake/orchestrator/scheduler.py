"""Host scheduler for the periodic weather checks."""

import asyncio
from datetime import time
from typing import Awaitable, Callable

from rainwake.core.clock import Clock
from rainwake.core.logging import get_logger
from rainwake.observability.tracing import TraceContext
from rainwake.orchestrator.jobs import JobResult, WeatherCheckJob

logger = get_logger(__name__)


def _slot_name(at: time) -> str:
    return f"weather_check_{at.hour:02d}{at.minute:02d}"


class RecheckScheduler:
    """Runs the weather check job at fixed local times of day.

    Timing is best effort: a sleeping host fires late, never early. The
    notification time itself is guarded by the alarm scheduler.
    """

    def __init__(
        self,
        job: WeatherCheckJob,
        clock: Clock,
        times: list[time],
        retry_base_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._job = job
        self._clock = clock
        self._times = list(times)
        self._retry_base_delay = retry_base_delay
        self._sleep = sleep
        self._slots: dict[str, asyncio.Task] = {}
        self._immediate: set[asyncio.Task] = set()

    @property
    def scheduled_slots(self) -> list[str]:
        return sorted(name for name, task in self._slots.items() if not task.done())

    def start(self) -> None:
        self.schedule_periodic_checks()
        logger.info("Recheck scheduler started", slots=self.scheduled_slots)

    def schedule_periodic_checks(self) -> None:
        """(Re)arm one recurring slot per configured time, replacing old ones."""
        self.cancel_all()
        for at in self._times:
            name = _slot_name(at)
            self._slots[name] = asyncio.create_task(self._run_slot(at), name=name)
        logger.info("Periodic weather checks scheduled", slots=sorted(self._slots))

    def cancel_all(self) -> None:
        for task in self._slots.values():
            task.cancel()
        self._slots.clear()

    def run_immediate(self) -> asyncio.Task:
        """Run one check now, with retries, in the background."""
        task = asyncio.create_task(self._run_with_retries("immediate"))
        self._immediate.add(task)
        task.add_done_callback(self._immediate.discard)
        logger.info("Immediate weather check enqueued")
        return task

    async def stop(self) -> None:
        tasks = list(self._slots.values()) + list(self._immediate)
        self.cancel_all()
        for task in self._immediate:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Recheck scheduler stopped")

    async def _run_slot(self, at: time) -> None:
        name = _slot_name(at)
        while True:
            target_ms = self._clock.next_occurrence_ms(at)
            logger.debug("Next weather check", slot=name, at=self._clock.format_ms(target_ms))
            # Timers may wake marginally early; never run before the slot
            remaining_ms = target_ms - self._clock.now_ms()
            while remaining_ms > 0:
                await self._sleep(remaining_ms / 1000)
                remaining_ms = target_ms - self._clock.now_ms()
            try:
                await self._run_with_retries(name)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Weather check slot error", slot=name, error=str(e), exc_info=True)

    async def _run_with_retries(self, slot: str) -> JobResult:
        """Run the job, backing off exponentially between retries."""
        attempt = 0
        while True:
            with TraceContext(job=slot, attempt=attempt):
                result = await self._job.run(attempt)
                logger.info("Weather check finished", result=result.value)
            if result != JobResult.RETRY:
                return result
            delay = self._retry_base_delay * (2**attempt)
            logger.info("Weather check retry scheduled", slot=slot, delay=delay)
            await self._sleep(delay)
            attempt += 1
