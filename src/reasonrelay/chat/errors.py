"""Custom exceptions for chat module.

This module defines the exception hierarchy for chat and streaming errors,
providing structured error handling with status codes and error codes.
"""


class ChatError(Exception):
    """Base exception for all chat-related errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        status_code: HTTP status code for API responses
    """

    def __init__(self, message: str, code: str, status_code: int) -> None:
        """Initialize chat error.

        Args:
            message: Human-readable error description
            code: Machine-readable error code
            status_code: HTTP status code (400, 500, etc.)
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ValidationError(ChatError):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="validation_error", status_code=400)


class InternalError(ChatError):
    """Raised when an internal server error occurs.

    This error indicates an unexpected failure in the system that is not
    the client's fault.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="internal_error", status_code=500)


class UpstreamError(ChatError):
    """Raised when the upstream model service fails a request.

    Subclasses distinguish a call that could not be established from one
    that broke mid-stream.
    """

    def __init__(self, message: str, code: str = "upstream_error") -> None:
        super().__init__(message=message, code=code, status_code=502)


class UpstreamOpenError(UpstreamError):
    """Raised when the streaming call to the model service cannot be opened."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="upstream_open_failed")


class UpstreamReadError(UpstreamError):
    """Raised when the streaming call fails after it was established."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="upstream_read_failed")


class MalformedChunkError(ChatError):
    """Raised when a single stream chunk does not have the expected shape.

    The stage decoder recovers from this locally by skipping the chunk, so it
    never reaches a client.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="malformed_chunk", status_code=500)


class SessionFinishedError(ChatError):
    """Raised when a terminal event is requested twice for one session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            message=f"Session '{session_id}' already emitted its terminal event",
            code="session_finished",
            status_code=500,
        )
        self.session_id = session_id
