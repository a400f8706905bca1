"""
REST Schemas

Request/response models for the message, history and preference endpoints.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from chat_relay.config.constants import LANGUAGE_NAME_MAX_LENGTH


class PeerMessageResponse(BaseModel):
    success: bool = True
    sender_language: str
    receiver_language: str
    original: str
    translated: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class MessageOut(BaseModel):
    id: int
    sender_id: str
    receiver_id: str
    mode: str
    original: str
    translated: Optional[str]
    sender_language: Optional[str]
    receiver_language: Optional[str]
    timestamp: Optional[str]


class HistoryResponse(BaseModel):
    messages: List[MessageOut]
    total: int


class LanguageResponse(BaseModel):
    user_id: str
    language: str


class LanguageUpdateRequest(BaseModel):
    language: str = Field(..., min_length=1, max_length=LANGUAGE_NAME_MAX_LENGTH)


class UserStatusResponse(BaseModel):
    user_id: str
    is_online: bool
    connections: int


class ContactOut(BaseModel):
    user_id: str
    display_name: str
    online: bool


class ContactsResponse(BaseModel):
    user_id: str
    contacts: List[ContactOut]
