"""API router aggregation."""

from fastapi import APIRouter

from noderesolve.api.health import router as health_router
from noderesolve.api.resolve import router as resolve_router

api_router = APIRouter()
api_router.include_router(health_router)
# Entity resolution endpoints
api_router.include_router(resolve_router)
