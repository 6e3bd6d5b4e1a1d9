"""Connection hub: membership and backpressure for live connections.

All mutation of the membership map happens inside one long-lived task
(``run``). Register, unregister and enqueue calls are submitted to that task
as commands and answered through futures, so they are applied strictly in
submission order.

Backpressure policy is drop-and-disconnect: when an event does not fit in a
connection's outbound queue, the connection is released and unregistered
instead of slowing the producer down. Events still queued for it are lost.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from reasonrelay.chat.models import StageEvent
from reasonrelay.chat.streaming import format_ws_message
from reasonrelay.hub.connection import Connection
from reasonrelay.hub.errors import (
    ConnectionAlreadyRegisteredError,
    ConnectionClosedError,
    HubNotRunningError,
)
from reasonrelay.observability.logging import get_logger
from reasonrelay.observability.metrics import get_metrics_collector

logger = get_logger(__name__)


class _CommandKind(str, Enum):
    REGISTER = "register"
    UNREGISTER = "unregister"
    ENQUEUE = "enqueue"
    STOP = "stop"


@dataclass
class _Command:
    kind: _CommandKind
    result: asyncio.Future
    connection: Optional[Connection] = None
    connection_id: Optional[str] = None
    payload: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


class ConnectionHub:
    """Owns the set of live connections.

    Example:
        >>> async with ConnectionHub() as hub:
        ...     connection = await hub.register(Connection(user_id="u1"))
        ...     await hub.enqueue(connection.id, event)
        ...     await hub.unregister(connection.id)
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        # Identifiers of removed connections; never accepted again
        self._retired: set[str] = set()
        self._commands: asyncio.Queue[_Command] = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._metrics = get_metrics_collector()

    async def __aenter__(self) -> "ConnectionHub":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def is_registered(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    async def start(self) -> None:
        """Start the hub loop if it is not already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="connection-hub")

    async def stop(self) -> None:
        """Unregister every connection and stop the hub loop."""
        if not self.running:
            return
        await self._submit(_CommandKind.STOP)
        assert self._task is not None
        await self._task
        self._task = None

    async def register(self, connection: Connection) -> Connection:
        """Add a connection in the active state.

        Raises:
            ConnectionAlreadyRegisteredError: If the identifier is already tracked
            ConnectionClosedError: If the connection is closed or its identifier was retired
            HubNotRunningError: If the hub loop is not running
        """
        return await self._submit(_CommandKind.REGISTER, connection=connection)

    async def unregister(self, connection_id: str) -> bool:
        """Remove a connection and release its outbound queue.

        Unregistering an unknown or already removed connection is a no-op.

        Returns:
            True if the connection was tracked and has been removed
        """
        return await self._submit(_CommandKind.UNREGISTER, connection_id=connection_id)

    async def enqueue(self, connection_id: str, event: StageEvent) -> bool:
        """Offer an event to a connection's outbound queue without blocking.

        A full queue disconnects the connection. Unknown identifiers are
        ignored.

        Returns:
            True if the event was queued for delivery
        """
        return await self._submit(
            _CommandKind.ENQUEUE,
            connection_id=connection_id,
            payload=format_ws_message(event),
            extra={"stage": event.stage.value, "session_id": event.session_id},
        )

    async def _submit(self, kind: _CommandKind, **kwargs: Any) -> Any:
        if not self.running:
            raise HubNotRunningError()
        future = asyncio.get_running_loop().create_future()
        self._commands.put_nowait(_Command(kind=kind, result=future, **kwargs))
        return await future

    async def run(self) -> None:
        """Process hub commands until stopped."""
        logger.info("hub_started")
        try:
            while True:
                command = await self._commands.get()
                if command.kind is _CommandKind.STOP:
                    self._resolve(command, None)
                    break
                try:
                    result = self._dispatch(command)
                except Exception as e:
                    if not command.result.done():
                        command.result.set_exception(e)
                else:
                    self._resolve(command, result)
        finally:
            for connection_id in list(self._connections):
                self._remove(connection_id)
            while not self._commands.empty():
                pending = self._commands.get_nowait()
                if not pending.result.done():
                    pending.result.set_exception(HubNotRunningError())
            logger.info("hub_stopped")

    @staticmethod
    def _resolve(command: _Command, result: Any) -> None:
        # The submitter may have been cancelled while waiting
        if not command.result.done():
            command.result.set_result(result)

    def _dispatch(self, command: _Command) -> Any:
        if command.kind is _CommandKind.REGISTER:
            assert command.connection is not None
            return self._add(command.connection)
        if command.kind is _CommandKind.UNREGISTER:
            assert command.connection_id is not None
            return self._remove(command.connection_id)
        if command.kind is _CommandKind.ENQUEUE:
            assert command.connection_id is not None and command.payload is not None
            return self._offer(command.connection_id, command.payload, command.extra)
        raise ValueError(f"Unknown hub command: {command.kind}")

    def _add(self, connection: Connection) -> Connection:
        if connection.id in self._connections:
            raise ConnectionAlreadyRegisteredError(connection.id)
        if connection.id in self._retired or not connection.is_active:
            raise ConnectionClosedError(connection.id)
        self._connections[connection.id] = connection
        self._metrics.record_connection_registered()
        logger.info("connection_registered", connection_id=connection.id, user_id=connection.user_id)
        return connection

    def _remove(self, connection_id: str, overflow: bool = False) -> bool:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return False
        self._retired.add(connection_id)
        dropped = connection.release()
        self._metrics.record_connection_unregistered(overflow=overflow)
        logger.info(
            "connection_unregistered",
            connection_id=connection_id,
            user_id=connection.user_id,
            dropped_events=dropped,
            overflow=overflow,
        )
        return True

    def _offer(self, connection_id: str, payload: str, extra: dict[str, Any]) -> bool:
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        if connection.offer(payload):
            return True

        logger.warning(
            "outbound_queue_overflow",
            connection_id=connection_id,
            queue_size=connection.queue_size,
            **extra,
        )
        self._remove(connection_id, overflow=True)
        return False
