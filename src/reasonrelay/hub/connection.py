"""A live client connection and its bounded outbound queue."""

import asyncio
from enum import Enum
from typing import Optional
from uuid import uuid4

DEFAULT_QUEUE_SIZE = 256


class ConnectionState(str, Enum):
    """Liveness of a connection: active -> closing -> closed."""

    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class Connection:
    """One live client channel.

    The hub is the only writer of the connection's liveness state. Request
    workers only offer serialized events to the outbound queue (through the
    hub); the connection's writer task drains it with ``next_message``.

    Attributes:
        id: Stable identifier, never reused
        user_id: Client-supplied user identifier
        state: Current liveness state
    """

    def __init__(
        self,
        user_id: str = "anonymous",
        queue_size: int = DEFAULT_QUEUE_SIZE,
        connection_id: Optional[str] = None,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self.id = connection_id or uuid4().hex
        self.user_id = user_id
        self.state = ConnectionState.ACTIVE
        self.queue_size = queue_size
        self._outbound: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=queue_size)
        self._tasks: set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r}, state={self.state.value!r})"

    @property
    def is_active(self) -> bool:
        return self.state is ConnectionState.ACTIVE

    @property
    def pending(self) -> int:
        """Number of items waiting in the outbound queue."""
        return self._outbound.qsize()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def offer(self, payload: str) -> bool:
        """Push a serialized event without blocking.

        Returns:
            False if the connection is not active or its queue is full
        """
        if not self.is_active:
            return False
        try:
            self._outbound.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        return True

    async def next_message(self) -> Optional[str]:
        """Wait for the next outbound payload.

        Returns:
            The payload, or None once the connection has been released
        """
        if self.state is ConnectionState.CLOSED and self._outbound.empty():
            return None
        return await self._outbound.get()

    def track(self, task: asyncio.Task) -> asyncio.Task:
        """Attach an in-flight request task so release can cancel it."""
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def release(self) -> int:
        """Release outbound resources and stop in-flight requests.

        Pending events are discarded and a close marker is queued for the
        writer. Safe to call more than once.

        Returns:
            Number of undelivered events that were discarded
        """
        if self.state is ConnectionState.CLOSED:
            return 0
        self.state = ConnectionState.CLOSING

        dropped = 0
        while not self._outbound.empty():
            self._outbound.get_nowait()
            dropped += 1
        self._outbound.put_nowait(None)

        for task in list(self._tasks):
            if task is not asyncio.current_task():
                task.cancel()

        self.state = ConnectionState.CLOSED
        return dropped
