"""Adapt callback-style location requests to awaitables."""

import asyncio
import threading
from typing import Callable

from rainwake.core.logging import get_logger
from rainwake.models.forecast import Location

logger = get_logger(__name__)


class CancellationToken:
    """Signals a pending location request that its caller gave up."""

    def __init__(self):
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register a callback; runs immediately if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.warning("Location cancel callback failed", exc_info=True)


SuccessCallback = Callable[[Location | None], None]
FailureCallback = Callable[[BaseException], None]
StartRequest = Callable[[SuccessCallback, FailureCallback, CancellationToken], None]


async def await_location_callback(start: StartRequest, timeout: float) -> Location | None:
    """Run a callback-style location request and await its outcome.

    The request is resolved exactly once: by the first success or failure
    callback, by the timeout, or by cancellation of the awaiting task. Later
    callbacks are ignored. The token is fired on timeout and cancellation.

    Args:
        start: Starts the request; may call back from any thread
        timeout: Seconds to wait for a callback

    Returns:
        The reported location, or None on failure, timeout or empty fix

    Raises:
        asyncio.CancelledError: The awaiting task was cancelled
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Location | None] = loop.create_future()
    token = CancellationToken()

    def resolve(value: Location | None) -> None:
        if not future.done():
            future.set_result(value)

    def on_success(location: Location | None) -> None:
        loop.call_soon_threadsafe(resolve, location)

    def on_failure(error: BaseException) -> None:
        logger.debug("Location request failed", error=str(error))
        loop.call_soon_threadsafe(resolve, None)

    try:
        start(on_success, on_failure, token)
    except PermissionError:
        logger.warning("Location request rejected: permission missing")
        return None

    try:
        return await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError:
        token.cancel()
        logger.info("Location request timed out", timeout=timeout)
        return None
    except asyncio.CancelledError:
        token.cancel()
        raise
