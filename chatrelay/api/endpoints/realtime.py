"""Real-time WebSocket endpoint for chat sessions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from chatrelay.api.deps import get_connection_registry, get_relay_engine
from chatrelay.schemas.realtime import ChatMessageEvent, JoinSessionEvent, RelayClientEvent
from chatrelay.services.realtime import SessionConnectionRegistry
from chatrelay.services.relay import ChatRelayEngine

router = APIRouter(tags=["realtime"])

client_event_adapter = TypeAdapter(RelayClientEvent)


@router.websocket("/ws")
async def relay_stream(
    websocket: WebSocket,
    registry: SessionConnectionRegistry = Depends(get_connection_registry),
    engine: ChatRelayEngine = Depends(get_relay_engine),
) -> None:
    connection_id = await registry.connect(websocket)
    try:
        while True:
            try:
                data = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            except ValueError:
                await registry.send_personal_message(
                    connection_id,
                    {"type": "error", "data": {"detail": "invalid_json"}},
                )
                continue

            try:
                event = client_event_adapter.validate_python(data)
            except ValidationError as exc:
                await registry.send_personal_message(
                    connection_id,
                    {
                        "type": "error",
                        "data": {
                            "detail": "invalid_payload",
                            "errors": exc.errors(include_url=False, include_context=False),
                        },
                    },
                )
                continue

            if isinstance(event, JoinSessionEvent):
                await registry.join(connection_id, event.session_id)
                continue

            if isinstance(event, ChatMessageEvent):
                await engine.handle_chat_event(
                    session_id=event.session_id,
                    sender=event.sender,
                    text=event.text,
                    file_url=event.file_url,
                    file_type=event.file_type,
                )
                continue

            logger.debug("Unhandled WebSocket message", payload=data)
    finally:
        await registry.leave(connection_id)
