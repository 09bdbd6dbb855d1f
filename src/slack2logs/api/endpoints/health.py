"""Index and health check endpoints for slack2logs.

The health check reports liveness of the process only; the collectors report
their own failures through logs and the error counters.
"""

from __future__ import annotations

from enum import Enum

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])

INDEX_PAGE = """<h2>slack2logs</h2>
<p>Relays Slack channel messages into VictoriaLogs.</p>
<ul>
<li><a href="/metrics">/metrics</a> - available service metrics</li>
<li><a href="/health">/health</a> - health status</li>
</ul>
"""


class OverallStatus(str, Enum):
    """Overall health status values."""

    HEALTHY = "healthy"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: OverallStatus = Field(description="Overall service health status")
    mode: str = Field(description="Collection mode of the running process")
    version: str = Field(description="Application version")

    model_config = {
        "json_schema_extra": {
            "examples": [{"status": "healthy", "mode": "live", "version": "0.1.0"}]
        }
    }


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index() -> str:
    """Index page linking the service endpoints."""
    return INDEX_PAGE


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns 200 while the process is serving requests.",
)
async def health_check(request: Request) -> HealthResponse:
    settings = request.app.state.settings
    logger.debug("health_check_requested")
    return HealthResponse(
        status=OverallStatus.HEALTHY,
        mode=request.app.state.run_mode,
        version=settings.app.app_version,
    )


__all__ = [
    "router",
    "HealthResponse",
    "OverallStatus",
]
