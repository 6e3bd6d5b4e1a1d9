"""Custom exceptions for the connection hub."""


class HubError(Exception):
    """Base exception for connection hub errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        status_code: HTTP status code for API responses
    """

    def __init__(self, message: str, code: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ConnectionAlreadyRegisteredError(HubError):
    """Raised when a connection identifier is registered twice."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(
            message=f"Connection '{connection_id}' is already registered",
            code="connection_already_registered",
            status_code=409,
        )
        self.connection_id = connection_id


class HubNotRunningError(HubError):
    """Raised when a command is submitted to a hub whose loop is not running."""

    def __init__(self) -> None:
        super().__init__(
            message="Connection hub is not running",
            code="hub_not_running",
            status_code=503,
        )


class ConnectionClosedError(HubError):
    """Raised when a closed connection, or an identifier already retired, is registered."""

    def __init__(self, connection_id: str) -> None:
        super().__init__(
            message=f"Connection '{connection_id}' is closed and cannot be registered again",
            code="connection_closed",
            status_code=409,
        )
        self.connection_id = connection_id
