"""Health and status endpoints for monitoring and load balancers."""

from typing import Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reasonrelay.api.dependencies import RelayRuntime, get_runtime
from reasonrelay.observability.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


class HealthCheckComponent(BaseModel):
    """Health status of a single component.

    Attributes:
        status: Component status (healthy, unhealthy, degraded)
        message: Optional status message or error details
    """

    status: str
    message: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """Overall health check response."""

    status: str
    components: dict[str, HealthCheckComponent]
    version: str = "0.1.0"


class StatusResponse(BaseModel):
    """Relay status and model information."""

    status: str = "running"
    model: str
    thinking_mode: bool
    enable_thinking: bool
    base_url: Optional[str] = None
    connections: int


def check_hub_health(runtime: RelayRuntime) -> HealthCheckComponent:
    if runtime.hub.running:
        return HealthCheckComponent(
            status="healthy",
            message=f"{runtime.hub.connection_count} connection(s) registered",
        )
    return HealthCheckComponent(status="unhealthy", message="Connection hub not running")


def check_llm_health(runtime: RelayRuntime) -> HealthCheckComponent:
    """Check that the upstream model service is configured.

    No request is sent; a missing API key is reported as degraded because
    some OpenAI-compatible endpoints accept anonymous calls.
    """
    if runtime.config.api_key:
        return HealthCheckComponent(status="healthy", message=f"Model {runtime.client.model}")
    return HealthCheckComponent(status="degraded", message="No API key configured")


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint.

    Returns:
        200 OK if healthy or degraded
        503 Service Unavailable if any component is unhealthy
    """
    runtime = get_runtime(request)
    components = {
        "hub": check_hub_health(runtime),
        "llm": check_llm_health(runtime),
    }

    statuses = [c.status for c in components.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif "degraded" in statuses:
        overall_status = "degraded"
        status_code = status.HTTP_200_OK
    else:
        overall_status = "healthy"
        status_code = status.HTTP_200_OK

    logger.info(
        "health_check_completed",
        overall_status=overall_status,
        hub=components["hub"].status,
        llm=components["llm"].status,
    )

    response = HealthCheckResponse(status=overall_status, components=components)
    return JSONResponse(status_code=status_code, content=response.model_dump())


@router.get("/status", response_model=StatusResponse)
async def relay_status(request: Request) -> StatusResponse:
    """Return the configured model, its reasoning support and live connections."""
    runtime = get_runtime(request)
    return StatusResponse(
        model=runtime.client.model,
        thinking_mode=runtime.supports_reasoning,
        enable_thinking=runtime.params.get().enable_thinking,
        base_url=runtime.config.api_base,
        connections=runtime.hub.connection_count,
    )
