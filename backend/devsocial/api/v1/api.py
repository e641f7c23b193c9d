"""API routes for the FastAPI application."""

from fastapi import APIRouter

from devsocial.api.v1.endpoints import health

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(health.api_health_router, prefix="/api/health", tags=["health"])
