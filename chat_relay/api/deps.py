"""
FastAPI dependencies wiring the relay's collaborators together.

Every collaborator is resolved through a dependency so tests can swap in
fakes with ``app.dependency_overrides``.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import chat_relay.models.database as database_module
from chat_relay.services.connection import ConnectionRegistry, connection_registry
from chat_relay.services.core.repositories import PreferenceStore, MessageLog
from chat_relay.services.language.gemini import get_language_service
from chat_relay.services.pipeline.processor import MessagePipeline
from chat_relay.services.protocols import LanguageServiceProtocol, TranscriptionProtocol
from chat_relay.services.session.handler import LiveSessionHandler
from chat_relay.services.transcription.speech import get_transcription_service


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory used by the repositories."""
    return database_module.AsyncSessionLocal


def get_connection_registry() -> ConnectionRegistry:
    """Process-wide connection registry."""
    return connection_registry


def get_language() -> LanguageServiceProtocol:
    return get_language_service()


def get_transcription() -> TranscriptionProtocol:
    return get_transcription_service()


def get_preference_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> PreferenceStore:
    return PreferenceStore(session_factory)


def get_message_log(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MessageLog:
    return MessageLog(session_factory)


def get_message_pipeline(
    language: LanguageServiceProtocol = Depends(get_language),
    transcription: TranscriptionProtocol = Depends(get_transcription),
    preferences: PreferenceStore = Depends(get_preference_store),
    message_log: MessageLog = Depends(get_message_log),
    registry: ConnectionRegistry = Depends(get_connection_registry),
) -> MessagePipeline:
    return MessagePipeline(language, transcription, preferences, message_log, registry)


def get_live_session_handler(
    registry: ConnectionRegistry = Depends(get_connection_registry),
    pipeline: MessagePipeline = Depends(get_message_pipeline),
    preferences: PreferenceStore = Depends(get_preference_store),
) -> LiveSessionHandler:
    return LiveSessionHandler(registry, pipeline, preferences)
