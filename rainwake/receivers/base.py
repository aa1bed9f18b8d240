"""Base class for event receivers."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from rainwake.core.logging import get_logger
from rainwake.observability.tracing import TraceContext

logger = get_logger(__name__)


class PendingResult:
    """Completion handle of one receiver firing."""

    def __init__(self, receiver: str):
        self._receiver = receiver
        self._done = asyncio.Event()

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    def finish(self) -> None:
        """Mark the firing complete.

        Raises:
            RuntimeError: If already finished
        """
        if self._done.is_set():
            raise RuntimeError(f"Pending result of {self._receiver} finished twice")
        self._done.set()

    async def wait(self) -> None:
        await self._done.wait()


class Receiver(ABC):
    """Handles one kind of asynchronous event.

    `receive()` returns immediately with a PendingResult. The handler runs as
    a task, and the result is finished exactly once when that task ends, be
    it by completion, exception, or cancellation.
    """

    name: str = "receiver"

    @abstractmethod
    async def handle(self, payload: dict[str, Any]) -> None:
        """Process one event."""
        pass

    def receive(self, payload: dict[str, Any] | None = None) -> PendingResult:
        pending = PendingResult(self.name)
        task = asyncio.get_running_loop().create_task(self._process(payload or {}))
        task.add_done_callback(lambda _: pending.finish())
        return pending

    async def __call__(self, payload: dict[str, Any]) -> None:
        """Alarm handler entry point: receive and wait for completion."""
        await self.receive(payload).wait()

    async def _process(self, payload: dict[str, Any]) -> None:
        with TraceContext(receiver=self.name):
            logger.info("Event received", payload=payload)
            try:
                await self.handle(payload)
            except Exception as e:
                logger.error("Error processing event", error=str(e), exc_info=True)
