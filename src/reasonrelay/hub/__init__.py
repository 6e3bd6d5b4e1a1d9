"""Connection hub for live WebSocket clients."""

from reasonrelay.hub.connection import Connection, ConnectionState
from reasonrelay.hub.errors import (
    ConnectionAlreadyRegisteredError,
    ConnectionClosedError,
    HubError,
    HubNotRunningError,
)
from reasonrelay.hub.hub import ConnectionHub

__all__ = [
    "Connection",
    "ConnectionState",
    "ConnectionHub",
    "HubError",
    "ConnectionAlreadyRegisteredError",
    "ConnectionClosedError",
    "HubNotRunningError",
]
