"""Main module of the FastAPI application.

Sets up the FastAPI application, the worker lifecycle around it, and the
middleware that isolates requests and logs them.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from devsocial.api.middleware import (
    add_request_id,
    exception_logging_middleware,
    log_requests,
    not_found_exception_handler,
    permission_exception_handler,
    rate_limit_exception_handler,
    rate_limit_headers_middleware,
    rate_limit_middleware,
    request_isolation_middleware,
)
from devsocial.api.v1.api import api_router
from devsocial.core.config import settings
from devsocial.core.exceptions import (
    NotFoundException,
    PermissionException,
    RateLimitExceededException,
)
from devsocial.core.lifecycle import LifecycleEvent, LifecyclePhase
from devsocial.core.logging import logger
from devsocial.core.redis_client import redis_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for worker start and stop.

    Initializes the DI container, exposes the pieces the middleware needs on
    ``app.state`` and fires WORKER_STARTING / WORKER_STOPPING.
    """
    from devsocial.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    container = initialize_container(settings)
    logger.info("Container initialized successfully")

    app.state.dispatcher = container.dispatcher
    app.state.rate_limiter = container.rate_limiter

    await container.metrics.start()
    await container.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STARTING))
    logger.info(f"Worker started (memory limit {settings.WORKER_MEMORY_LIMIT})")
    try:
        yield
    finally:
        await container.dispatcher.dispatch(LifecycleEvent(LifecyclePhase.WORKER_STOPPING))
        logger.info("Worker stopping")
        try:
            await container.metrics.stop()
        finally:
            await redis_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router)

# Starlette wraps in reverse: the last registered middleware is the outermost.
# Resulting order, outermost first: exception logging, request id, request
# log, isolation, rate limit headers, rate limit.
app.middleware("http")(rate_limit_middleware)
app.middleware("http")(rate_limit_headers_middleware)
app.middleware("http")(request_isolation_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(add_request_id)
app.middleware("http")(exception_logging_middleware)

# Register exception handlers
app.exception_handler(PermissionException)(permission_exception_handler)
app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(RateLimitExceededException)(rate_limit_exception_handler)
