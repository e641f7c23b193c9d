"""Middleware for the FastAPI application.

This module contains middleware that process requests and responses, and
the exception handlers registered on the app.

Request isolation lives here: every request runs as its own
``OperationContext`` and fires the worker lifecycle phases around the
endpoint, so the worker hooks can sample it and reset state afterwards.
"""

import time
import traceback
import uuid
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from devsocial.core.config import settings
from devsocial.core.context import (
    OperationContext,
    OperationKind,
    bind_operation,
    unbind_operation,
)
from devsocial.core.exceptions import (
    NotFoundException,
    PermissionException,
    RateLimitExceededException,
)
from devsocial.core.lifecycle import LifecycleDispatcher, LifecycleEvent, LifecyclePhase
from devsocial.core.logging import logger

# Probes and scrapers are never rate limited.
_RATE_LIMIT_SKIP_PREFIXES = ("/health", "/api/health")

# Resolves the caller's user id, or None for anonymous requests.
Identify = Callable[[Request], Awaitable[Optional[str]]]


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Middleware to generate and add a request ID to the request for tracing.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    request.state.request_id = str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


async def log_requests(request: Request, call_next: callable) -> Response:
    """Middleware to log incoming requests."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info(
        (
            f"Handled request {request.method} {request.url} in {duration:.2f} seconds. "
            f"Response code: {response.status_code}"
        )
    )
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to log unhandled exceptions and answer them with a 500.

    Args:
    ----
        request (Request): The incoming request.
        call_next (callable): The next middleware in the chain.

    Returns:
    -------
        Response: The response to the incoming request.

    """
    try:
        response = await call_next(request)
        return response
    except Exception as exc:
        logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")

        error_message = f"Internal Server Error: {exc.__class__.__name__}: {str(exc)}"
        response_content = {"detail": error_message}

        # Stack traces only leave the worker in debug mode
        if settings.LOCAL_DEVELOPMENT or settings.DEBUG:
            response_content["trace"] = traceback.format_exc()

        return JSONResponse(status_code=500, content=response_content)


async def request_isolation_middleware(request: Request, call_next: callable) -> Response:
    """Run the request as an isolated operation.

    Creates the request's ``OperationContext``, binds it for the duration of
    the request and fires the lifecycle phases on the dispatcher found at
    ``request.app.state.dispatcher``:

        REQUEST_RECEIVED -> endpoint -> REQUEST_HANDLED
                                     -> WORKER_ERROR_OCCURRED (re-raised)
        REQUEST_TERMINATED, always

    An authentication layer attaches identities by setting
    ``app.state.identify`` to an ``Identify`` callable. It runs before
    REQUEST_RECEIVED so the pre-request reset sees an authenticated
    operation and flushes the user-data cache tag.
    """
    dispatcher: LifecycleDispatcher | None = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        return await call_next(request)

    ctx = OperationContext(
        kind=OperationKind.REQUEST,
        name=str(request.url),
        method=request.method,
        operation_id=getattr(request.state, "request_id", None) or str(uuid.uuid4()),
    )
    request.state.operation = ctx
    token = bind_operation(ctx)
    try:
        await _attach_identity(request, ctx)
        await dispatcher.dispatch(LifecycleEvent(LifecyclePhase.REQUEST_RECEIVED, ctx))
        try:
            response = await call_next(request)
        except Exception as exc:
            await dispatcher.dispatch(
                LifecycleEvent(LifecyclePhase.WORKER_ERROR_OCCURRED, ctx, error=exc)
            )
            raise
        await dispatcher.dispatch(LifecycleEvent(LifecyclePhase.REQUEST_HANDLED, ctx))
        return response
    finally:
        await dispatcher.dispatch(LifecycleEvent(LifecyclePhase.REQUEST_TERMINATED, ctx))
        unbind_operation(token)


async def _attach_identity(request: Request, ctx: OperationContext) -> None:
    identify: Optional[Identify] = getattr(request.app.state, "identify", None)
    if identify is None:
        return
    user_id = await identify(request)
    if user_id is not None:
        ctx.login(user_id)


def _extract_client_ip(request: Request) -> str:
    """Client address, preferring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def rate_limit_middleware(request: Request, call_next: callable) -> Response:
    """Count the request against the client's window.

    The limiter is read from ``request.app.state.rate_limiter``; when it is
    unset rate limiting is off. The result is stored on
    ``request.state.rate_limit_result`` for ``rate_limit_headers_middleware``.
    """
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None or request.url.path.startswith(_RATE_LIMIT_SKIP_PREFIXES):
        return await call_next(request)

    client_ip = _extract_client_ip(request)
    result = await limiter.hit(f"ip:{client_ip}")
    request.state.rate_limit_result = result

    if not result.allowed:
        logger.warning(
            f"Rate limit exceeded for {client_ip}: {request.method} {request.url.path}"
        )
        exc = RateLimitExceededException(
            retry_after=result.retry_after, limit=result.limit, remaining=result.remaining
        )
        return await rate_limit_exception_handler(request, exc)

    return await call_next(request)


async def rate_limit_headers_middleware(request: Request, call_next: callable) -> Response:
    """Middleware to add rate limit headers to responses.

    Follows standards defined in RFC 6585.
    """
    response = await call_next(request)

    rate_limit_result = getattr(request.state, "rate_limit_result", None)
    if rate_limit_result:
        response.headers["RateLimit-Limit"] = str(rate_limit_result.limit)
        response.headers["RateLimit-Remaining"] = str(rate_limit_result.remaining)
        response.headers["RateLimit-Reset"] = str(int(time.time() + rate_limit_result.retry_after))

    return response


# Exception handlers
async def permission_exception_handler(request: Request, exc: PermissionException) -> JSONResponse:
    """Exception handler for PermissionException.

    Returns:
    -------
        JSONResponse: A 403 Forbidden status response that details the error message.

    """
    return JSONResponse(status_code=403, content={"detail": str(exc)})


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Exception handler for NotFoundException.

    Returns:
    -------
        JSONResponse: A 404 Not Found status response that details the error message.

    """
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException
) -> JSONResponse:
    """Exception handler for RateLimitExceededException.

    Returns:
    -------
        JSONResponse: A 429 Too Many Requests status response with rate limit headers.

    """
    reset_timestamp = int(time.time() + exc.retry_after)

    return JSONResponse(
        status_code=429,
        content={"detail": str(exc)},
        headers={
            "Retry-After": str(int(exc.retry_after) + 1),
            "RateLimit-Limit": str(exc.limit),
            "RateLimit-Remaining": str(exc.remaining),
            "RateLimit-Reset": str(reset_timestamp),
        },
    )
