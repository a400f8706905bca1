"""
User API - Language preference and presence

Implements:
- Preferred language read/update
- Live presence status
- Contact list with presence
"""
import logging

from fastapi import APIRouter, Depends

from chat_relay.api.deps import get_connection_registry, get_message_log, get_preference_store
from chat_relay.schemas.messages import (
    ContactOut,
    ContactsResponse,
    LanguageResponse,
    LanguageUpdateRequest,
    UserStatusResponse,
)
from chat_relay.services.connection.registry import ConnectionRegistry
from chat_relay.services.core.repositories import MessageLog, PreferenceStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users")


@router.get("/{user_id}/language", response_model=LanguageResponse)
async def get_language(
    user_id: str,
    preferences: PreferenceStore = Depends(get_preference_store),
):
    """Get a user's preferred language (default if the user is unknown)."""
    language = await preferences.get(user_id)
    return LanguageResponse(user_id=user_id, language=language)


@router.put("/{user_id}/language", response_model=LanguageResponse)
async def update_language(
    user_id: str,
    request: LanguageUpdateRequest,
    preferences: PreferenceStore = Depends(get_preference_store),
):
    """Set a user's preferred language."""
    language = request.language.strip()
    await preferences.set(user_id, language)
    logger.info(f"User {user_id} language set to {language}")
    return LanguageResponse(user_id=user_id, language=language)


@router.get("/{user_id}/status", response_model=UserStatusResponse)
async def get_status(
    user_id: str,
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """Get whether a user currently holds any live connection."""
    return UserStatusResponse(
        user_id=user_id,
        is_online=registry.is_online(user_id),
        connections=registry.connection_count(user_id),
    )


@router.get("/{user_id}/contacts", response_model=ContactsResponse)
async def get_contacts(
    user_id: str,
    preferences: PreferenceStore = Depends(get_preference_store),
    message_log: MessageLog = Depends(get_message_log),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """
    Get everyone the user has exchanged messages with, most recent first.

    Each contact carries its display name (falling back to the id) and whether
    it currently holds a live connection.
    """
    contacts = []
    for contact_id in await message_log.contacts(user_id):
        user = await preferences.get_user(contact_id)
        contacts.append(ContactOut(
            user_id=contact_id,
            display_name=(user.display_name if user else None) or contact_id,
            online=registry.is_online(contact_id),
        ))
    return ContactsResponse(user_id=user_id, contacts=contacts)
