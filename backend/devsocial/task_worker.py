"""Background task worker.

Runs the container's ``TaskRunner`` over the configured queues. Every job is
an operation with the same lifecycle as an API request, so the worker hooks
sample and reset it the same way.

Usage:
    python -m devsocial.task_worker
"""

import asyncio
import signal
from typing import Any

from devsocial.core.config import settings
from devsocial.core.container import Container
from devsocial.core.lifecycle import LifecycleEvent, LifecyclePhase
from devsocial.core.logging import logger
from devsocial.core.redis_client import redis_client


class TaskWorker:
    """Task worker lifecycle management.

    Responsibilities:
        - Start/stop the metrics sidecar
        - Fire WORKER_STARTING / WORKER_STOPPING around the runner
        - Handle graceful shutdown
    """

    def __init__(self, container: Container) -> None:
        self._container = container
        self._running = False

    async def start(self) -> None:
        """Start the metrics sidecar, then consume jobs until stopped."""
        await self._container.metrics.start()
        await self._container.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STARTING))
        self._running = True
        await self._container.task_runner.run_forever()

    def request_stop(self) -> None:
        """Ask the runner to return after the job in progress."""
        self._container.task_runner.stop()

    async def stop(self) -> None:
        """Fire WORKER_STOPPING and release resources. Safe to call twice."""
        if not self._running:
            return
        self._running = False
        logger.info("Stopping task worker gracefully")
        await self._container.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STOPPING))
        await self._container.metrics.stop()


async def main() -> None:
    """Main entry point for the task worker process."""
    # 1. Initialize DI container (fail fast if wiring is broken)
    from devsocial.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    container = initialize_container(settings)
    logger.info("Container initialized successfully")

    worker = TaskWorker(container)

    # 2. Set up signal handlers
    def signal_handler(signum: int, frame: Any) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        worker.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # 3. Run worker
    try:
        await worker.start()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        await worker.stop()
        await redis_client.close()


def run() -> None:
    """Console-script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
