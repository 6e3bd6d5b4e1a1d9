"""Chat API route handlers.

This module provides the HTTP counterparts of the WebSocket relay: a
streaming endpoint that emits stage events as Server-Sent Events and a
non-streaming endpoint that returns the aggregated reasoning and answer.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from reasonrelay.api.dependencies import get_chat_service
from reasonrelay.chat.models import ChatRequest, ThinkingResponse
from reasonrelay.chat.service import ChatService

router = APIRouter(prefix="/api/v1", tags=["chat"])


@router.post("/chat")
async def chat(
    body: ChatRequest, service: ChatService = Depends(get_chat_service)
) -> StreamingResponse:
    """Stream one chat session as Server-Sent Events.

    Example stream::

        event: reasoning
        data: {"stage": "reasoning", "content": "Let me think", "complete": false, ...}

        event: reasoning_complete
        data: {"stage": "reasoning_complete", "content": "", "complete": false, ...}

        event: answer
        data: {"stage": "answer", "content": "42", "complete": false, ...}

        event: complete
        data: {"stage": "complete", "content": "42", "complete": true, ...}
    """
    return StreamingResponse(
        service.stream_chat(body),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/thinking", response_model=ThinkingResponse)
async def thinking(
    body: ChatRequest, service: ChatService = Depends(get_chat_service)
) -> ThinkingResponse:
    """Run one session to completion and return reasoning and answer together.

    Upstream failures are returned as 502 ``upstream_error`` responses.
    """
    return await service.thinking(body)
