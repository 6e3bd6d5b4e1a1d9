"""Wire formatting for stage events.

Stage events leave the relay in two shapes: Server-Sent Events for the HTTP
streaming endpoint and a small JSON envelope for WebSocket clients. Both
carry the originating session id so clients can demultiplex concurrent
sessions.
"""

import json
from typing import Any, AsyncIterator

from reasonrelay.chat.errors import ChatError
from reasonrelay.chat.models import ServerMessage, Stage, StageEvent


def format_sse_event(event_type: str, data: Any) -> str:
    """Format a Server-Sent Event (SSE) with the given type and data.

    Args:
        event_type: The SSE event type (e.g., "answer", "complete", "error")
        data: The event data to be serialized. Always JSON-serialized to ensure
            proper formatting.

    Returns:
        Formatted SSE string in the format: "event: {type}\ndata: {json}\n\n"

    Examples:
        >>> format_sse_event("status", "connected")
        'event: status\\ndata: "connected"\\n\\n'
    """
    data_json = json.dumps(data)
    return f"event: {event_type}\ndata: {data_json}\n\n"


def stage_payload(event: StageEvent) -> dict[str, Any]:
    """Build the JSON body shared by both wire formats."""
    return {
        "stage": event.stage.value,
        "content": event.text,
        "complete": event.terminal,
        "session_id": event.session_id,
    }


def format_stage_event(event: StageEvent) -> str:
    """Format a stage event as SSE, using the stage name as the event type.

    Examples:
        >>> event = StageEvent(stage=Stage.ANSWER, text="Hi", session_id="s1")
        >>> format_stage_event(event).splitlines()[0]
        'event: answer'
    """
    return format_sse_event(event.stage.value, stage_payload(event))


def format_ws_message(event: StageEvent) -> str:
    """Serialize a stage event into the WebSocket ``ai_response`` envelope."""
    return ServerMessage.from_event(event).model_dump_json()


async def stream_with_error_handling(
    stream: AsyncIterator[str], session_id: str = ""
) -> AsyncIterator[str]:
    """Wrap an SSE stream so that exceptions become a terminal error event.

    Args:
        stream: The async iterator to wrap with error handling
        session_id: Session id to stamp on a synthesized error event

    Yields:
        SSE-formatted strings from the original stream, or an error event
        if an exception occurs
    """
    try:
        async for item in stream:
            yield item
    except ChatError as e:
        error = StageEvent(stage=Stage.ERROR, text=e.message, terminal=True, session_id=session_id)
        yield format_stage_event(error)
    except Exception as e:
        error = StageEvent(
            stage=Stage.ERROR, text=f"Internal error: {e}", terminal=True, session_id=session_id
        )
        yield format_stage_event(error)
