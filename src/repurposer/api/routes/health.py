"""Health check endpoint."""

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from ...logging.config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Health"])


class HealthStatus(BaseModel):
    """Health check response model."""

    status: Literal["healthy", "degraded"] = Field(description="Overall health status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Current server timestamp (UTC)",
    )
    version: str = Field(description="Service version")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health Check",
    description="Check that the service is running and its database is reachable",
)
async def health_check(request: Request) -> HealthStatus:
    """Liveness check including the database."""
    container = request.app.state.container
    checks = {"api": True}
    try:
        await container.db.connect()
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", error=str(e))
        checks["database"] = False

    return HealthStatus(
        status="healthy" if all(checks.values()) else "degraded",
        version=request.app.version,
        checks=checks,
    )
