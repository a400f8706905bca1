"""
Schemas Package

Pydantic models for API and WebSocket events.
"""

from chat_relay.schemas.websocket_events import (
    WebSocketEventBase,
    ChatMessageEvent,
    ConnectedEvent,
    NewMessageEvent,
    MessageAckEvent,
    UserStatusEvent,
    ErrorEvent,
)
from chat_relay.schemas.messages import (
    PeerMessageResponse,
    ErrorResponse,
    MessageOut,
    HistoryResponse,
    LanguageResponse,
    LanguageUpdateRequest,
    UserStatusResponse,
    ContactOut,
    ContactsResponse,
)

__all__ = [
    "WebSocketEventBase",
    "ChatMessageEvent",
    "ConnectedEvent",
    "NewMessageEvent",
    "MessageAckEvent",
    "UserStatusEvent",
    "ErrorEvent",
    "PeerMessageResponse",
    "ErrorResponse",
    "MessageOut",
    "HistoryResponse",
    "LanguageResponse",
    "LanguageUpdateRequest",
    "UserStatusResponse",
    "ContactOut",
    "ContactsResponse",
]
