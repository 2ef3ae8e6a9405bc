"""Health check endpoints for Docker/Kubernetes liveness and readiness checks.

- /health/live  → process is up, no dependency checks
- /health/ready → database answers; 503 otherwise
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from rankify import __version__

router = APIRouter(prefix="/health", tags=["Health"])


class LivenessStatus(BaseModel):
    status: str = Field(description="alive")
    timestamp: str
    version: str = __version__


class ReadinessStatus(BaseModel):
    status: str = Field(description="ready or not_ready")
    timestamp: str
    database: bool
    catalog_configured: bool


@router.get("/live", response_model=LivenessStatus)
async def liveness() -> LivenessStatus:
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


@router.get("/ready", response_model=ReadinessStatus)
async def readiness(request: Request) -> JSONResponse:
    """200 when the database is reachable, 503 otherwise.

    Missing catalog credentials are reported but don't make the app unready:
    rankings, friends and notifications work without the catalog proxy.
    """
    database_ok = await request.app.state.db.ping()
    body = ReadinessStatus(
        status="ready" if database_ok else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        database=database_ok,
        catalog_configured=request.app.state.settings.spotify.is_configured,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )
