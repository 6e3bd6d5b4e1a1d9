"""Stage decoding for streamed model output.

The decoder turns raw upstream chunks for one request into an ordered
sequence of typed StageEvents. It owns the reasoning-to-answer transition:
the first answer text of a session is always preceded by exactly one
``reasoning_complete`` event, and once that marker is out no further
reasoning is emitted.

Chunks may arrive as litellm streaming objects, plain mappings, or raw
``data: {...}`` lines. Anything that cannot be read as a chat-completion
chunk is skipped without ending the session.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from reasonrelay.chat.errors import MalformedChunkError, SessionFinishedError, UpstreamError
from reasonrelay.chat.models import Stage, StageEvent
from reasonrelay.observability.logging import get_logger

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE_MARKER = "[DONE]"


class _ToolFunction(BaseModel):
    name: Optional[str] = None
    arguments: Optional[str] = None


class _ToolCall(BaseModel):
    id: Optional[str] = None
    index: Optional[int] = None
    function: Optional[_ToolFunction] = None


class _Delta(BaseModel):
    content: Optional[str] = None
    reasoning_content: Optional[str] = None
    reasoning: Optional[str] = None
    tool_calls: Optional[list[_ToolCall]] = None


class _Choice(BaseModel):
    delta: _Delta = Field(default_factory=_Delta)


class _Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class _Chunk(BaseModel):
    choices: list[_Choice] = Field(default_factory=list)
    usage: Optional[_Usage] = None


@dataclass
class RequestSession:
    """Transient state for one streaming request.

    Attributes:
        reasoning_mode: Effective reasoning mode for this request
        session_id: Identifier stamped on every event of the session
        reasoning_text: Accumulated reasoning text
        answer_text: Accumulated answer text
        answering: True once the first answer text has been seen
        finished: True once the terminal event has been emitted
        failure: Upstream failure that ended the session, if any
    """

    reasoning_mode: bool = True
    session_id: str = field(default_factory=lambda: uuid4().hex)
    reasoning_text: str = ""
    answer_text: str = ""
    answering: bool = False
    finished: bool = False
    failure: Optional[UpstreamError] = None


def parse_chunk(raw: Any) -> Optional[_Chunk]:
    """Read one upstream chunk into its chat-completion structure.

    Args:
        raw: litellm chunk object, mapping, or raw SSE/JSON text line

    Returns:
        Parsed chunk, or None for blank lines and the ``[DONE]`` marker

    Raises:
        MalformedChunkError: If the chunk cannot be read
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedChunkError(f"Chunk is not valid UTF-8: {e}") from e

    if isinstance(raw, str):
        line = raw.strip()
        if line.startswith(SSE_DATA_PREFIX):
            line = line[len(SSE_DATA_PREFIX) :].strip()
        if not line or line == SSE_DONE_MARKER:
            return None
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            raise MalformedChunkError(f"Chunk is not valid JSON: {e}") from e
    elif hasattr(raw, "model_dump"):
        raw = raw.model_dump()

    if not isinstance(raw, Mapping):
        raise MalformedChunkError(f"Unexpected chunk type: {type(raw).__name__}")

    try:
        return _Chunk.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise MalformedChunkError(f"Chunk does not match completion schema: {e}") from e


def format_tool_call(name: Optional[str], arguments: Optional[str]) -> str:
    """Summarize a tool invocation for display.

    Examples:
        >>> format_tool_call("get_weather", '{"city": "Paris"}')
        'Tool: get_weather - Args: {"city": "Paris"}'
    """
    summary = f"Tool: {name or ''}"
    if arguments:
        summary += f" - Args: {arguments}"
    return summary


def format_usage(prompt_tokens: int, completion_tokens: int, total_tokens: int) -> str:
    return f"Tokens: {prompt_tokens} prompt, {completion_tokens} completion, {total_tokens} total"


class StageDecoder:
    """Converts the chunks of one session into StageEvents.

    Example:
        >>> decoder = StageDecoder(RequestSession(session_id="s1"))
        >>> [e.stage.value for e in decoder.decode({"choices": [{"delta": {"content": "hi"}}]})]
        ['reasoning_complete', 'answer']
        >>> decoder.complete().text
        'hi'
    """

    def __init__(self, session: Optional[RequestSession] = None) -> None:
        self.session = session or RequestSession()

    @property
    def finished(self) -> bool:
        return self.session.finished

    def _event(self, stage: Stage, text: str = "") -> StageEvent:
        return StageEvent(
            stage=stage,
            text=text,
            terminal=stage.is_terminal,
            session_id=self.session.session_id,
        )

    def decode(self, raw: Any) -> list[StageEvent]:
        """Decode one chunk into zero or more events.

        Malformed chunks are logged and skipped. Chunks that arrive after the
        terminal event produce nothing.

        Args:
            raw: The upstream chunk

        Returns:
            Events in emission order
        """
        if self.session.finished:
            return []

        try:
            chunk = parse_chunk(raw)
        except MalformedChunkError as e:
            logger.debug("malformed_chunk_skipped", session_id=self.session.session_id, error=e.message)
            return []

        if chunk is None:
            return []

        events: list[StageEvent] = []
        if chunk.choices:
            delta = chunk.choices[0].delta
            events.extend(self._decode_reasoning(delta.reasoning_content or delta.reasoning))
            events.extend(self._decode_answer(delta.content))
            for tool_call in delta.tool_calls or []:
                function = tool_call.function or _ToolFunction()
                events.append(
                    self._event(Stage.TOOL_CALL, format_tool_call(function.name, function.arguments))
                )

        if chunk.usage is not None:
            usage = chunk.usage
            events.append(
                self._event(
                    Stage.USAGE,
                    format_usage(usage.prompt_tokens, usage.completion_tokens, usage.total_tokens),
                )
            )

        return events

    def _decode_reasoning(self, text: Optional[str]) -> list[StageEvent]:
        if not text:
            return []
        if self.session.answering:
            # reasoning_complete has already been sent
            logger.debug("late_reasoning_dropped", session_id=self.session.session_id)
            return []
        self.session.reasoning_text += text
        return [self._event(Stage.REASONING, text)]

    def _decode_answer(self, text: Optional[str]) -> list[StageEvent]:
        if not text:
            return []
        events: list[StageEvent] = []
        if not self.session.answering:
            # Emitted even when no reasoning was produced at all
            events.append(self._event(Stage.REASONING_COMPLETE))
            self.session.answering = True
        self.session.answer_text += text
        events.append(self._event(Stage.ANSWER, text))
        return events

    def complete(self) -> StageEvent:
        """Emit the terminal event for a gracefully ended stream.

        Returns:
            ``complete`` event carrying the full answer text

        Raises:
            SessionFinishedError: If a terminal event was already emitted
        """
        return self._finish(Stage.COMPLETE, self.session.answer_text)

    def fail(self, message: str) -> StageEvent:
        """Emit the terminal event for a failed stream.

        Raises:
            SessionFinishedError: If a terminal event was already emitted
        """
        return self._finish(Stage.ERROR, message)

    def _finish(self, stage: Stage, text: str) -> StageEvent:
        if self.session.finished:
            raise SessionFinishedError(self.session.session_id)
        self.session.finished = True
        return self._event(stage, text)
