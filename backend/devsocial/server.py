"""API worker server runner.

Starts the FastAPI app under uvicorn with a pool of worker processes. Each
process is recycled after ``max_requests`` requests so slow leaks that the
per-request state reset cannot reach are bounded.

Usage:
    python -m devsocial.server
"""

from dataclasses import dataclass

import uvicorn

from devsocial.core.config import settings
from devsocial.core.logging import logger


@dataclass(frozen=True)
class WorkerServerConfig:
    """Server configuration - all tunables in one place.

    Attributes:
        host: Interface to bind
        port: Port to bind
        workers: Number of worker processes
        max_requests: Requests a worker process serves before it is replaced
        log_level: uvicorn log level
    """

    host: str
    port: int
    workers: int
    max_requests: int
    log_level: str = "info"

    @classmethod
    def from_settings(cls) -> "WorkerServerConfig":
        """Build config from environment settings."""
        return cls(
            host=settings.WORKER_HOST,
            port=settings.WORKER_PORT,
            workers=settings.WORKER_PROCESSES,
            max_requests=settings.WORKER_MAX_REQUESTS,
            log_level=settings.LOG_LEVEL.lower(),
        )

    def uvicorn_options(self) -> dict:
        """Keyword arguments for ``uvicorn.run``."""
        return {
            "host": self.host,
            "port": self.port,
            "workers": self.workers,
            "limit_max_requests": self.max_requests,
            "log_level": self.log_level,
        }


def main() -> None:
    """Main entry point for the API worker server."""
    config = WorkerServerConfig.from_settings()
    logger.info(
        f"Starting {config.workers} worker process(es) on {config.host}:{config.port} "
        f"(recycled every {config.max_requests} requests)"
    )
    # An import string is required for more than one worker process.
    uvicorn.run("devsocial.main:app", **config.uvicorn_options())


if __name__ == "__main__":
    main()
