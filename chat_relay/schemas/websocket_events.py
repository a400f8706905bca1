"""
WebSocket Event Schemas

Pydantic models for type-safe WebSocket event handling.
"""

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field, model_validator

from chat_relay.config.constants import MAX_TEXT_LENGTH


# =============================================================================
# Client -> Server Events
# =============================================================================

class WebSocketEventBase(BaseModel):
    """Base model for all WebSocket events."""
    type: str


class ChatMessageEvent(WebSocketEventBase):
    """Outgoing chat message; runs the same pipeline as the REST ingress."""
    type: Literal["chat_message"] = "chat_message"
    receiver_id: str = Field(..., min_length=1)
    sender_id: Optional[str] = None
    body: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    text: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    client_message_id: Optional[str] = None

    @model_validator(mode="after")
    def _merge_body(self):
        # Older widgets send `text`, newer ones `body`
        if self.body is None:
            self.body = self.text or ""
        return self


# =============================================================================
# Server -> Client Events
# =============================================================================

class ConnectedEvent(WebSocketEventBase):
    """Sent once after the connection is registered."""
    type: Literal["connected"] = "connected"
    user_id: str
    connection_id: str
    language: str
    online_users: list[str] = []


class NewMessageEvent(WebSocketEventBase):
    """Translated message pushed to every live connection of the receiver."""
    type: Literal["new_message"] = "new_message"
    message_id: Optional[int] = None
    sender_id: str
    receiver_id: str
    mode: str
    original: str
    translated: str
    sender_language: str
    receiver_language: str
    timestamp: datetime


class MessageAckEvent(WebSocketEventBase):
    """Acknowledgement returned to the connection that sent a chat_message."""
    type: Literal["message_ack"] = "message_ack"
    client_message_id: Optional[str] = None
    success: bool = True
    sender_language: str
    receiver_language: str
    original: str
    translated: str
    delivered: int = 0


class UserStatusEvent(WebSocketEventBase):
    """Presence change broadcast to other online users."""
    type: Literal["user_status"] = "user_status"
    user_id: str
    display_name: Optional[str] = None
    status: Literal["online", "offline"]


class ErrorEvent(WebSocketEventBase):
    """Error reported back on the live channel."""
    type: Literal["error"] = "error"
    error: str
    client_message_id: Optional[str] = None
