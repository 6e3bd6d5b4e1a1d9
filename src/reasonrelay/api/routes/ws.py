"""WebSocket relay endpoint.

Each socket becomes a hub Connection with two pumps: the read pump turns
``user_message`` frames into request workers, and the write pump drains the
connection's outbound queue to the socket. The connection is unregistered
when the client goes away; a connection dropped by the hub for overflow has
its socket closed by the write pump.

Client frame::

    {"type": "user_message", "content": "Why is the sky blue? /think", "mode": "auto"}

Server frame::

    {"type": "ai_response", "stage": "answer", "content": "...",
     "complete": false, "session_id": "..."}
"""

import asyncio

from fastapi import APIRouter, WebSocket
from pydantic import ValidationError as PydanticValidationError
from starlette.websockets import WebSocketState

from reasonrelay.api.dependencies import get_runtime
from reasonrelay.chat.models import ClientMessage
from reasonrelay.chat.service import ChatService
from reasonrelay.hub.connection import Connection
from reasonrelay.observability.logging import get_logger, set_correlation_id

logger = get_logger(__name__)
router = APIRouter(tags=["websocket"])

USER_MESSAGE = "user_message"


async def read_pump(websocket: WebSocket, connection: Connection, service: ChatService) -> None:
    """Read client frames until the socket disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            logger.info("client_disconnected", connection_id=connection.id, code=message.get("code"))
            return

        raw = message.get("text")
        if raw is None and message.get("bytes") is not None:
            raw = message["bytes"].decode("utf-8", errors="replace")
        if raw is None:
            continue

        try:
            frame = ClientMessage.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("invalid_client_frame", connection_id=connection.id, error=str(e))
            continue

        if frame.type != USER_MESSAGE:
            logger.debug("client_frame_ignored", connection_id=connection.id, type=frame.type)
            continue
        if not frame.content.strip():
            continue
        if not connection.is_active:
            return

        service.spawn(connection, frame.content, frame.mode)


async def write_pump(websocket: WebSocket, connection: Connection) -> None:
    """Send queued payloads until the connection is released."""
    while True:
        payload = await connection.next_message()
        if payload is None:
            break
        try:
            await websocket.send_text(payload)
        except Exception as e:
            logger.warning("websocket_write_failed", connection_id=connection.id, error=str(e))
            return

    if websocket.client_state is WebSocketState.CONNECTED:
        try:
            await websocket.close()
        except RuntimeError as e:
            logger.debug("websocket_close_failed", connection_id=connection.id, error=str(e))


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket, user_id: str = "anonymous") -> None:
    """Serve one WebSocket client through the connection hub."""
    runtime = get_runtime(websocket)
    await websocket.accept()

    connection = Connection(user_id=user_id or "anonymous", queue_size=runtime.config.queue_size)
    await runtime.hub.register(connection)
    set_correlation_id(connection.id)

    writer = asyncio.create_task(write_pump(websocket, connection))
    try:
        await read_pump(websocket, connection, runtime.service)
    finally:
        if runtime.hub.running:
            await runtime.hub.unregister(connection.id)
        else:
            connection.release()
        await writer
