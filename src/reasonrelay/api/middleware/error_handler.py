"""Error handling for the relay API.

Domain errors from the chat and hub packages carry their own ``code`` and
``status_code`` and are returned as ``{"code", "message"}`` bodies. Errors
that happen after an SSE stream has started never reach these handlers;
they are turned into ``error`` stage events instead.
"""

from typing import Any, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from reasonrelay.chat.errors import ChatError, InternalError
from reasonrelay.hub.errors import HubError
from reasonrelay.observability.logging import get_correlation_id, get_logger

logger = get_logger(__name__)


def error_response(
    status_code: int,
    code: str,
    message: str,
    errors: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    """Build a JSON error body, tagged with the request's correlation ID."""
    content: dict[str, Any] = {"code": code, "message": message}
    if errors is not None:
        content["errors"] = errors

    headers = {}
    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Correlation-ID"] = correlation_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application.

    Args:
        app: The FastAPI application instance to configure
    """

    @app.exception_handler(ChatError)
    @app.exception_handler(HubError)
    async def handle_domain_error(
        request: Request, exc: Union[ChatError, HubError]
    ) -> JSONResponse:
        logger.warning(
            "request_rejected",
            path=request.url.path,
            code=exc.code,
            status_code=exc.status_code,
            error=exc.message,
        )
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(PydanticValidationError)
    async def handle_validation_error(
        request: Request, exc: PydanticValidationError
    ) -> JSONResponse:
        """Report model validation failures raised inside handlers as 400.

        Request body errors detected by FastAPI itself keep its default 422
        response.
        """
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return error_response(400, "validation_error", "Request validation failed", errors)

    @app.exception_handler(Exception)
    async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
        # Details stay in the log, never in the response
        logger.exception("unhandled_error", path=request.url.path, error=str(exc))
        error = InternalError("An internal server error occurred")
        return error_response(error.status_code, error.code, error.message)
