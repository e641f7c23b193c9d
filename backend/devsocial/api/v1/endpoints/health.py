"""Health check endpoints.

``/health`` answers as long as the process serves HTTP. ``/health/ready``
and ``/api/health`` probe dependencies and answer 503 when a critical one
is down or the worker is draining.
"""

from fastapi import APIRouter, Depends, Response

from devsocial.api.deps import Inject, get_logger
from devsocial.core.config import settings
from devsocial.core.logging import ContextualLogger
from devsocial.core.protocols import HealthServiceProtocol
from devsocial.schemas.health import CheckStatus, LivenessResponse, ReadinessResponse

router = APIRouter()


@router.get("")
async def health_check() -> dict[str, str]:
    """Check if the API is healthy.

    Returns:
    --------
        dict: A dictionary containing the status of the API.
    """
    return {"status": "healthy"}


@router.get("/live")
async def liveness() -> LivenessResponse:
    """Liveness probe: confirms the process is running."""
    return LivenessResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness(
    response: Response,
    health: HealthServiceProtocol = Inject(HealthServiceProtocol),
    log: ContextualLogger = Depends(get_logger),
) -> ReadinessResponse:
    """Readiness probe: checks critical dependencies.

    Only critical probes (Postgres by default) gate the HTTP status code.
    Informational probes (Redis, queue backlog) are reported but never cause
    a 503.
    """
    result = await health.check_readiness(debug=settings.DEBUG)

    if result.status != "ready":
        down = [name for name, check in result.checks.items() if check.status == CheckStatus.down]
        log.warning(f"Readiness check failed: {', '.join(down) or 'draining'}")
        response.status_code = 503
    return result


# Same readiness check under the path load balancers and the operator
# health check poll.
api_health_router = APIRouter()
api_health_router.add_api_route(
    "",
    readiness,
    methods=["GET"],
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
