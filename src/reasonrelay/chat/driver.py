"""Stream driver: one upstream streaming call per user request.

The driver opens the call, feeds every chunk through a StageDecoder and
hands the resulting events to the caller in order. It always ends a session
with exactly one terminal event and always closes the upstream stream,
including when the consumer stops early or the task is cancelled.
"""

import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Optional

from reasonrelay.chat.decoder import RequestSession, StageDecoder
from reasonrelay.chat.errors import UpstreamError, UpstreamOpenError, UpstreamReadError
from reasonrelay.chat.models import ChatMessage, Stage, StageEvent, ThinkingResponse
from reasonrelay.llm.client import UpstreamClient, close_stream
from reasonrelay.observability.logging import get_logger
from reasonrelay.observability.metrics import get_metrics_collector

logger = get_logger(__name__)

StageSink = Callable[[StageEvent], Awaitable[None]]


class StreamDriver:
    """Runs streaming sessions against an upstream client.

    Example:
        >>> driver = StreamDriver(client)
        >>> async for event in driver.stream(messages, reasoning_mode=True):
        ...     print(event.stage, event.text)
    """

    def __init__(self, client: UpstreamClient) -> None:
        self._client = client
        self._metrics = get_metrics_collector()

    async def stream(
        self,
        messages: Sequence[ChatMessage],
        reasoning_mode: bool,
        session_id: Optional[str] = None,
    ) -> AsyncIterator[StageEvent]:
        """Stream the stage events of one session.

        Args:
            messages: Conversation history for the request
            reasoning_mode: Effective reasoning mode
            session_id: Optional identifier to stamp on events

        Yields:
            StageEvents in decoder order; the last one is terminal
        """
        session = RequestSession(reasoning_mode=reasoning_mode)
        if session_id:
            session.session_id = session_id
        events = self._stream_session(messages, session)
        try:
            async for event in events:
                yield event
        finally:
            await events.aclose()

    async def _stream_session(
        self, messages: Sequence[ChatMessage], session: RequestSession
    ) -> AsyncIterator[StageEvent]:
        reasoning_mode = session.reasoning_mode
        decoder = StageDecoder(session)
        log = logger.bind(session_id=session.session_id)
        started = time.monotonic()

        log.info("session_started", reasoning_mode=reasoning_mode, messages=len(messages))

        try:
            upstream = await self._client.open_stream(messages, reasoning_mode)
        except Exception as e:
            log.warning("upstream_open_failed", error=str(e))
            session.failure = UpstreamOpenError(f"Upstream open failed: {e}")
            yield self._finish(decoder.fail(session.failure.message), started)
            return

        try:
            try:
                async for chunk in upstream:
                    for event in decoder.decode(chunk):
                        self._metrics.record_stage_event(event.stage.value)
                        yield event
            except Exception as e:
                log.warning("upstream_read_failed", error=str(e))
                session.failure = UpstreamReadError(f"Upstream read failed: {e}")
                terminal = decoder.fail(session.failure.message)
            else:
                terminal = decoder.complete()
            yield self._finish(terminal, started)
        finally:
            try:
                await close_stream(upstream)
            except Exception as e:
                log.debug("upstream_close_failed", error=str(e))

    def _finish(self, event: StageEvent, started: float) -> StageEvent:
        outcome = "completed" if event.stage is Stage.COMPLETE else "failed"
        duration = time.monotonic() - started
        self._metrics.record_stage_event(event.stage.value)
        self._metrics.record_session(outcome, duration)
        logger.info(
            f"session_{outcome}",
            session_id=event.session_id,
            duration_ms=int(duration * 1000),
        )
        return event

    async def run(
        self,
        messages: Sequence[ChatMessage],
        reasoning_mode: bool,
        sink: StageSink,
        session_id: Optional[str] = None,
    ) -> None:
        """Drive one session and forward every event to ``sink`` in order.

        Args:
            messages: Conversation history for the request
            reasoning_mode: Effective reasoning mode
            sink: Async callback receiving each StageEvent
            session_id: Optional identifier to stamp on events
        """
        events = self.stream(messages, reasoning_mode, session_id=session_id)
        try:
            async for event in events:
                await sink(event)
        finally:
            await events.aclose()

    async def collect(
        self, messages: Sequence[ChatMessage], reasoning_mode: bool
    ) -> ThinkingResponse:
        """Run a session to completion and aggregate its text.

        Returns:
            ThinkingResponse with all reasoning and answer text

        Raises:
            UpstreamOpenError: If the upstream call could not be opened
            UpstreamReadError: If the upstream stream failed mid-read
            UpstreamError: If the session ended with any other error event
        """
        session = RequestSession(reasoning_mode=reasoning_mode)
        response = ThinkingResponse()
        events = self._stream_session(messages, session)
        try:
            async for event in events:
                if event.stage is Stage.REASONING:
                    response.reasoning_content += event.text
                elif event.stage is Stage.ANSWER:
                    response.answer_content += event.text
                elif event.stage is Stage.COMPLETE:
                    response.is_complete = True
                elif event.stage is Stage.ERROR:
                    raise session.failure or UpstreamError(event.text)
        finally:
            await events.aclose()
        return response
