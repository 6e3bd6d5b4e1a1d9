"""FastAPI application factory for the reasoning relay.

This module provides the application factory pattern for creating
configured FastAPI instances with middleware, routes, error handlers and
the connection hub lifecycle.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from reasonrelay.api.dependencies import build_runtime
from reasonrelay.api.middleware.correlation import CorrelationIdMiddleware
from reasonrelay.api.middleware.error_handler import setup_error_handlers
from reasonrelay.api.routes.chat import router as chat_router
from reasonrelay.api.routes.health import router as health_router
from reasonrelay.api.routes.home import router as home_router
from reasonrelay.api.routes.params import router as params_router
from reasonrelay.api.routes.ws import router as ws_router
from reasonrelay.llm.client import UpstreamClient
from reasonrelay.llm.config import RelayConfig, load_config_from_env
from reasonrelay.observability.logging import get_logger, setup_logging
from reasonrelay.observability.metrics import get_metrics_collector

logger = get_logger(__name__)


def create_app(
    config: Optional[RelayConfig] = None,
    client: Optional[UpstreamClient] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    This factory function creates a FastAPI application with:
    - CORS middleware configured for development
    - Correlation ID middleware and error handlers
    - WebSocket relay at /ws and HTTP chat routes under /api/v1
    - Health, status and Prometheus metrics endpoints
    - Connection hub started and stopped with the application

    Args:
        config: Relay configuration (defaults to environment)
        client: Upstream client override, mainly for tests

    Returns:
        Configured FastAPI application instance

    Examples:
        >>> app = create_app()
        >>> # uvicorn reasonrelay.api.app:app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        log_level = os.getenv("LOG_LEVEL", "INFO")
        json_logs = os.getenv("JSON_LOGS", "true").lower() == "true"
        setup_logging(log_level=log_level, json_logs=json_logs)

        runtime = build_runtime(config or load_config_from_env(), client=client)
        app.state.runtime = runtime
        await runtime.hub.start()
        logger.info("application_started", model=runtime.client.model)

        try:
            yield
        finally:
            await runtime.hub.stop()
            logger.info("application_stopped")

    app = FastAPI(
        title="Reasoning Relay",
        version="0.1.0",
        description="Streams model reasoning and answers to live clients",
        lifespan=lifespan,
    )

    # TODO: restrict allowed origins once the deployment domain is fixed
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)  # type: ignore[arg-type]

    setup_error_handlers(app)

    app.include_router(ws_router)
    app.include_router(chat_router)
    app.include_router(params_router)
    app.include_router(health_router)
    app.include_router(home_router)

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=get_metrics_collector().generate_metrics(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return app


# Module-level app instance for uvicorn
app = create_app()
