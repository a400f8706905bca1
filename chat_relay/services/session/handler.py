import json
import logging
from typing import Optional, Dict, Any

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError as SchemaValidationError

from chat_relay.config.constants import WS_POLICY_VIOLATION
from chat_relay.schemas.websocket_events import (
    ChatMessageEvent,
    ConnectedEvent,
    ErrorEvent,
    MessageAckEvent,
    UserStatusEvent,
)
from chat_relay.services.connection.models import LiveConnection
from chat_relay.services.connection.registry import ConnectionRegistry
from chat_relay.services.core.repositories import PreferenceStore
from chat_relay.services.exceptions import (
    ValidationError,
    UpstreamServiceError,
    StorageError,
)
from chat_relay.services.pipeline.processor import MessagePipeline, InboundMessage

logger = logging.getLogger(__name__)


class LiveSessionHandler:
    """
    Orchestrates the lifecycle of one live WebSocket connection.
    Handles:
    - Identity check and connection registration
    - Presence notifications to other online users
    - Message loop processing (chat_message / ping)
    - Cleanup on disconnect
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        pipeline: MessagePipeline,
        preferences: PreferenceStore,
    ):
        self.registry = registry
        self.pipeline = pipeline
        self.preferences = preferences

    async def handle_connection(
        self,
        websocket: WebSocket,
        user_id: Optional[str],
        display_name: Optional[str] = None
    ):
        """
        Main entry point for handling a WebSocket connection.
        """
        user_id = (user_id or "").strip()
        if not user_id:
            logger.warning("[LiveSession] Connection rejected: missing user_id")
            await websocket.close(code=WS_POLICY_VIOLATION, reason="Missing user_id")
            return

        await websocket.accept()
        connection = LiveConnection(websocket, user_id, display_name)

        # 1. Connect & Register
        if not await self._register_connection(connection):
            await websocket.close(code=WS_POLICY_VIOLATION)
            return

        # 2. Start Message Loop
        try:
            await self._message_loop(connection)
        finally:
            await self._cleanup(connection)

    async def _register_connection(self, connection: LiveConnection) -> bool:
        """
        Provisions the user, registers the connection and sends the welcome message.
        """
        user_id = connection.user_id
        language = self.preferences.default_language

        try:
            user = await self.preferences.ensure_user(user_id, connection.display_name)
            language = user.preferred_language or language
        except StorageError as e:
            # Live delivery does not depend on the user record
            logger.error(f"[LiveSession] Could not provision user {user_id}: {e}")

        try:
            came_online = await self.registry.register(user_id, connection)
        except ValidationError as e:
            logger.warning(f"[LiveSession] Registration rejected for {user_id}: {e}")
            return False

        await connection.send_json(ConnectedEvent(
            user_id=user_id,
            connection_id=connection.connection_id,
            language=language,
            online_users=[uid for uid in self.registry.online_users() if uid != user_id],
        ).model_dump(mode="json"))

        if came_online:
            await self.registry.broadcast_except(user_id, UserStatusEvent(
                user_id=user_id,
                display_name=connection.display_name,
                status="online",
            ).model_dump(mode="json"))

        return True

    async def _message_loop(self, connection: LiveConnection):
        """
        Main message processing loop.
        """
        websocket = connection.websocket
        try:
            while True:
                message = await websocket.receive_text()
                await self._handle_text_message(message, connection)

        except WebSocketDisconnect:
            logger.info(f"[LiveSession] User {connection.user_id} disconnected ({connection.connection_id[:8]})")

        except Exception as e:
            logger.error(f"[LiveSession] Error during message loop for {connection.user_id}: {e}")

    async def _handle_text_message(self, text_data: str, connection: LiveConnection):
        """
        Handle JSON events sent by the client.
        """
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.warning(f"[LiveSession] Invalid JSON received from {connection.user_id}")
            await connection.send_json(ErrorEvent(error="Invalid JSON").model_dump())
            return

        if not isinstance(data, dict):
            await connection.send_json(ErrorEvent(error="Expected a JSON object").model_dump())
            return

        msg_type = data.get("type")

        if msg_type == "chat_message":
            await self._handle_chat_message(data, connection)

        elif msg_type in ("ping", "heartbeat"):
            await connection.send_json({"type": "pong"})

        else:
            logger.warning(f"[LiveSession] Unknown message type: {msg_type}")
            await connection.send_json(ErrorEvent(error=f"Unknown message type: {msg_type}").model_dump())

    async def _handle_chat_message(self, data: Dict[str, Any], connection: LiveConnection):
        """Run an outgoing chat message through the pipeline and acknowledge it."""
        client_message_id = data.get("client_message_id")

        try:
            event = ChatMessageEvent.model_validate(data)
        except SchemaValidationError as e:
            first = e.errors()[0]
            error = f"Invalid chat_message: {'.'.join(str(p) for p in first['loc'])} {first['msg']}"
            await connection.send_json(ErrorEvent(
                error=error, client_message_id=client_message_id
            ).model_dump())
            return

        # The connection identity is the sender; a mismatching sender_id is refused
        if event.sender_id and event.sender_id != connection.user_id:
            logger.warning(
                f"[LiveSession] {connection.user_id} tried to send as {event.sender_id}"
            )
            await connection.send_json(ErrorEvent(
                error="sender_id does not match connection identity",
                client_message_id=client_message_id,
            ).model_dump())
            return

        try:
            result = await self.pipeline.process(InboundMessage(
                sender_id=connection.user_id,
                receiver_id=event.receiver_id,
                mode="text",
                text=event.body,
            ))
        except (ValidationError, UpstreamServiceError) as e:
            await connection.send_json(ErrorEvent(
                error=str(e), client_message_id=client_message_id
            ).model_dump())
            return

        await connection.send_json(MessageAckEvent(
            client_message_id=event.client_message_id,
            delivered=result.delivered,
            **result.to_response(),
        ).model_dump())

    async def _cleanup(self, connection: LiveConnection):
        """
        Unregister the connection and announce the user offline if it was the last one.
        """
        went_offline = await self.registry.unregister(connection.user_id, connection)

        # A failed push may already have removed the last connection
        if went_offline or not self.registry.is_online(connection.user_id):
            await self.registry.broadcast_except(connection.user_id, UserStatusEvent(
                user_id=connection.user_id,
                display_name=connection.display_name,
                status="offline",
            ).model_dump(mode="json"))
