"""Chat service that connects user messages to streaming sessions.

This module coordinates directive parsing, the stream driver, and delivery
of stage events either to a hub connection (WebSocket clients) or to an SSE
response (HTTP clients).
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Optional
from uuid import uuid4

from reasonrelay.chat.directives import parse_directives
from reasonrelay.chat.driver import StreamDriver
from reasonrelay.chat.models import ChatMessage, ChatMode, ChatRequest, StageEvent, ThinkingResponse
from reasonrelay.chat.streaming import format_stage_event, stream_with_error_handling
from reasonrelay.hub.connection import Connection
from reasonrelay.hub.hub import ConnectionHub
from reasonrelay.llm.params import ModelParamsStore
from reasonrelay.observability.logging import get_logger

logger = get_logger(__name__)


class ChatService:
    """Service for processing chat messages into streamed stage events.

    Each inbound message runs as its own session. Sessions on the same
    connection are not serialized; their events are told apart by
    ``session_id``.

    Example:
        >>> service = ChatService(driver, hub, params)
        >>> task = service.spawn(connection, "Why is the sky blue? /think")
    """

    def __init__(
        self,
        driver: StreamDriver,
        hub: ConnectionHub,
        params: ModelParamsStore,
        supports_reasoning: bool = True,
    ) -> None:
        self._driver = driver
        self._hub = hub
        self._params = params
        self._supports_reasoning = supports_reasoning

    def resolve_mode(self, text: str, mode: ChatMode = "auto") -> tuple[str, bool]:
        """Work out the prompt text and reasoning mode for one request.

        Directive tokens are always stripped. An explicit ``thinking`` or
        ``regular`` mode overrides them; ``auto`` follows the directive or the
        current default, and is off for models without reasoning support.

        Returns:
            Tuple of (cleaned text, effective reasoning mode)
        """
        cleaned, reasoning_mode = parse_directives(text, self._params.get().enable_thinking)
        if mode == "thinking":
            return cleaned, True
        if mode == "regular":
            return cleaned, False
        return cleaned, reasoning_mode and self._supports_reasoning

    @staticmethod
    def build_messages(text: str) -> list[ChatMessage]:
        return [ChatMessage(role="user", content=text)]

    async def handle_user_message(
        self, connection_id: str, text: str, mode: ChatMode = "auto"
    ) -> str:
        """Stream one session into a hub connection.

        Once the hub reports the connection gone, remaining events of the
        session are dropped.

        Returns:
            The session id stamped on every event
        """
        cleaned, reasoning_mode = self.resolve_mode(text, mode)
        session_id = uuid4().hex
        delivering = True

        async def deliver(event: StageEvent) -> None:
            nonlocal delivering
            if not delivering:
                return
            delivering = await self._hub.enqueue(connection_id, event)
            if not delivering:
                logger.info(
                    "session_delivery_stopped",
                    connection_id=connection_id,
                    session_id=session_id,
                    stage=event.stage.value,
                )

        await self._driver.run(
            self.build_messages(cleaned), reasoning_mode, deliver, session_id=session_id
        )
        return session_id

    def spawn(
        self, connection: Connection, text: str, mode: ChatMode = "auto"
    ) -> asyncio.Task:
        """Start a request worker for a message received on ``connection``."""
        task = asyncio.create_task(self.handle_user_message(connection.id, text, mode))
        task.add_done_callback(_log_worker_failure)
        return connection.track(task)

    async def stream_chat(self, request: ChatRequest) -> AsyncIterator[str]:
        """Stream one session as Server-Sent Events.

        Args:
            request: ChatRequest with the user's message and mode

        Yields:
            SSE-formatted stage events, ending with ``complete`` or ``error``
        """
        cleaned, reasoning_mode = self.resolve_mode(request.message, request.mode)
        session_id = uuid4().hex

        async def events() -> AsyncIterator[str]:
            async for event in self._driver.stream(
                self.build_messages(cleaned), reasoning_mode, session_id=session_id
            ):
                yield format_stage_event(event)

        async for item in stream_with_error_handling(events(), session_id=session_id):
            yield item

    async def thinking(self, request: ChatRequest) -> ThinkingResponse:
        """Run one session to completion and return the aggregated text.

        Raises:
            UpstreamError: If the session ends with an error
        """
        cleaned, reasoning_mode = self.resolve_mode(request.message, request.mode)
        return await self._driver.collect(self.build_messages(cleaned), reasoning_mode)


def _log_worker_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error: Optional[BaseException] = task.exception()
    if error is not None:
        logger.error("request_worker_failed", error=str(error), exc_info=error)
