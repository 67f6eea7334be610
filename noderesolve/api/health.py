"""Health check endpoints for the resolution service.

Readiness depends on the node store and a wired entity resolver. Whether
semantic search has an embedder is reported but never blocks readiness.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from noderesolve.config import settings

router = APIRouter(prefix="/health", tags=["health"])

# Checks that must be "ok" for the service to take resolve traffic
REQUIRED_CHECKS = ("database", "resolver")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    service: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]


async def _check_node_store(request: Request) -> str:
    db = getattr(request.app.state, "db", None)
    if db is None:
        return "not_configured"
    try:
        return "ok" if await db.is_healthy() else "failed"
    except Exception:
        return "failed"


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - process is up."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - resolve requests can be served.

    Checks:
    - database: node store connected and answering
    - resolver: EntityResolver wired on app.state
    - embeddings: embedder configured (informational)
    """
    state = request.app.state
    checks = {
        "database": await _check_node_store(request),
        "resolver": (
            "ok"
            if getattr(state, "entity_resolver", None) is not None
            else "not_configured"
        ),
        "embeddings": (
            "configured"
            if getattr(state, "embedder", None) is not None
            else "not_configured"
        ),
    }

    ready = all(checks[name] == "ok" for name in REQUIRED_CHECKS)
    return ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)
