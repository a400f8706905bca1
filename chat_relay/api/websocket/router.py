"""
WebSocket Router - Live delivery channel

This is the thin routing layer that delegates to LiveSessionHandler
for all WebSocket session management.
"""
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, Query

from chat_relay.api.deps import get_live_session_handler
from chat_relay.services.session import LiveSessionHandler

router = APIRouter()


@router.websocket("/ws")
async def ws_endpoint(
    websocket: WebSocket,
    user_id: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    handler: LiveSessionHandler = Depends(get_live_session_handler),
):
    """
    WebSocket endpoint for live message delivery.

    Query Parameters:
        user_id: Identity the connection belongs to (required, rejected with 1008 if absent)
        name: Optional display name

    Client -> Server (JSON):
        - chat_message: {receiver_id, body, client_message_id?}
        - ping: latency check

    Server -> Client (JSON):
        - connected, new_message, message_ack, user_status, pong, error
    """
    await handler.handle_connection(websocket, user_id, display_name=name)
