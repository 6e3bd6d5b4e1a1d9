"""Pydantic models for chat requests, stage events and wire envelopes.

This module defines the data models that flow through the relay: the typed
stage events produced by the stage decoder, the chat request accepted over
HTTP and WebSocket, and the JSON envelopes exchanged with clients.
"""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from reasonrelay.chat.errors import ValidationError


class Stage(str, Enum):
    """Classification of one fragment of streamed model output."""

    REASONING = "reasoning"
    REASONING_COMPLETE = "reasoning_complete"
    ANSWER = "answer"
    TOOL_CALL = "tool_call"
    USAGE = "usage"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """Whether a stage ends its session."""
        return self in (Stage.COMPLETE, Stage.ERROR)


class StageEvent(BaseModel):
    """One typed transition produced by the stage decoder.

    Attributes:
        stage: Stage classification
        text: Incremental text, summary, or full answer for ``complete``
        terminal: True only for ``complete`` and ``error``
        session_id: Identifier of the request session that produced the event
    """

    model_config = ConfigDict(frozen=True)

    stage: Stage
    text: str = ""
    terminal: bool = False
    session_id: str

    @model_validator(mode="after")
    def validate_terminal_matches_stage(self) -> "StageEvent":
        """Ensure only complete and error events are terminal.

        Raises:
            ValueError: If terminal disagrees with the stage
        """
        if self.terminal != self.stage.is_terminal:
            raise ValueError(f"terminal={self.terminal} is invalid for stage '{self.stage.value}'")
        return self


class ChatMessage(BaseModel):
    """A role-tagged message sent to the model service."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


ChatMode = Literal["auto", "thinking", "regular"]


class ChatRequest(BaseModel):
    """Request model for chat interactions.

    Attributes:
        message: User's chat message (1-10000 characters), may end with a
            ``/think`` or ``/no_think`` directive
        mode: ``thinking`` forces reasoning on, ``regular`` forces it off,
            ``auto`` follows directives and the global default
    """

    message: str = Field(..., min_length=1, max_length=10000)
    mode: ChatMode = "auto"

    @field_validator("message")
    @classmethod
    def validate_message_not_whitespace(cls, value: str) -> str:
        """Validate that message is not only whitespace.

        Raises:
            ValidationError: If message contains only whitespace
        """
        if not value.strip():
            raise ValidationError("Message cannot be empty or contain only whitespace")
        return value


class ThinkingResponse(BaseModel):
    """Aggregated result of a whole streaming session.

    Attributes:
        reasoning_content: All reasoning text in arrival order
        answer_content: The full final answer
        is_complete: True when the session ended with a complete event
    """

    reasoning_content: str = ""
    answer_content: str = ""
    is_complete: bool = False


class ClientMessage(BaseModel):
    """Inbound WebSocket frame sent by a client."""

    type: str
    content: str = ""
    mode: ChatMode = "auto"


class ServerMessage(BaseModel):
    """Outbound WebSocket frame carrying one stage event."""

    type: str = "ai_response"
    stage: Stage
    content: str
    complete: bool
    session_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: StageEvent) -> "ServerMessage":
        return cls(
            stage=event.stage,
            content=event.text,
            complete=event.terminal,
            session_id=event.session_id,
        )
