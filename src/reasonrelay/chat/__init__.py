"""Chat module for the relay.

This module provides directive parsing, stage decoding, the stream driver,
and wire formatting of stage events. The driver and service live in
``reasonrelay.chat.driver`` and ``reasonrelay.chat.service``.
"""

from reasonrelay.chat.decoder import RequestSession, StageDecoder
from reasonrelay.chat.directives import parse_directives
from reasonrelay.chat.errors import (
    ChatError,
    InternalError,
    MalformedChunkError,
    SessionFinishedError,
    UpstreamError,
    UpstreamOpenError,
    UpstreamReadError,
    ValidationError,
)
from reasonrelay.chat.models import ChatMessage, ChatRequest, Stage, StageEvent, ThinkingResponse

__all__ = [
    # Decoding
    "RequestSession",
    "StageDecoder",
    "parse_directives",
    # Models
    "ChatMessage",
    "ChatRequest",
    "Stage",
    "StageEvent",
    "ThinkingResponse",
    # Errors
    "ChatError",
    "ValidationError",
    "InternalError",
    "UpstreamError",
    "UpstreamOpenError",
    "UpstreamReadError",
    "MalformedChunkError",
    "SessionFinishedError",
]
