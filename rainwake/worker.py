"""Worker process entry point for the scheduling runtime."""

import asyncio
import signal

from rainwake.container import Services, build_services
from rainwake.core.config import get_settings
from rainwake.core.logging import get_logger, setup_logging
from rainwake.storage.redis_client import (
    close_redis_pool,
    get_redis,
    init_redis_pool,
)

logger = get_logger(__name__)


class WorkerManager:
    """Runs alarms and periodic checks until told to stop."""

    def __init__(self):
        self._settings = get_settings()
        self._services: Services | None = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start the runtime and block until stop() is called."""
        setup_logging()
        logger.info("Starting worker manager", timezone=self._settings.timezone)

        await init_redis_pool()

        try:
            self._services = build_services(self._settings, get_redis())
            await self._services.start()
            await self._shutdown_event.wait()
        finally:
            await self._cleanup()

    async def stop(self) -> None:
        """Signal the runtime to stop."""
        logger.info("Stopping worker")
        self._shutdown_event.set()

    async def _cleanup(self) -> None:
        """Clean up resources."""
        logger.info("Cleaning up resources")
        if self._services:
            await self._services.stop()
        await close_redis_pool()
        logger.info("Cleanup complete")


async def main() -> None:
    """Main entry point for worker process."""
    manager = WorkerManager()

    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(manager.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    await manager.start()


if __name__ == "__main__":
    asyncio.run(main())
