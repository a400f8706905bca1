"""
Repository Layer - Preference Store and Message Log.

This module provides the two persistence contracts the message pipeline
depends on, separating business logic from data access:

- PreferenceStore: user identity -> preferred language (upsert, default fallback)
- MessageLog: append-only record of processed messages

Each operation opens its own session from the injected factory so concurrent
pipeline runs never share a session. SQLAlchemy errors are wrapped in
StorageError; callers decide whether that is fatal.

Usage:
    from chat_relay.services.core.repositories import PreferenceStore

    store = PreferenceStore(AsyncSessionLocal)
    language = await store.get("bob")   # "English" for an unknown user
"""

import logging
from typing import List, Optional

from sqlalchemy import select, or_, and_, case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_relay.config.settings import settings
from chat_relay.models.message import Message
from chat_relay.models.user import User
from chat_relay.services.exceptions import StorageError

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Durable mapping from user identity to preferred language."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_language: Optional[str] = None
    ):
        self._session_factory = session_factory
        self._default_language = default_language or settings.DEFAULT_LANGUAGE

    @property
    def default_language(self) -> str:
        return self._default_language

    async def get(self, user_id: str) -> str:
        """
        Get a user's preferred language, provisioning a default record if absent.

        Args:
            user_id: Opaque user identity

        Returns:
            Stored language, or the configured default
        """
        try:
            async with self._session_factory() as db:
                user = await db.get(User, user_id)
                if user is not None:
                    return user.preferred_language or self._default_language

                db.add(User(id=user_id, preferred_language=self._default_language))
                try:
                    await db.commit()
                    logger.info(f"Provisioned user {user_id} with default language {self._default_language}")
                except IntegrityError:
                    # Provisioned concurrently by another request
                    await db.rollback()
                    user = await db.get(User, user_id)
                    if user is not None and user.preferred_language:
                        return user.preferred_language
                return self._default_language
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read language for {user_id}: {e}") from e

    async def set(self, user_id: str, language: str) -> None:
        """
        Upsert a user's preferred language (last write wins).

        Args:
            user_id: Opaque user identity
            language: Language name, e.g. "French"
        """
        try:
            async with self._session_factory() as db:
                user = await db.get(User, user_id)
                if user is not None:
                    user.preferred_language = language
                    await db.commit()
                    return

                db.add(User(id=user_id, preferred_language=language))
                try:
                    await db.commit()
                except IntegrityError:
                    await db.rollback()
                    user = await db.get(User, user_id)
                    user.preferred_language = language
                    await db.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write language for {user_id}: {e}") from e

    async def ensure_user(self, user_id: str, display_name: Optional[str] = None) -> User:
        """Provision a user on first contact, filling in the display name when given."""
        try:
            async with self._session_factory() as db:
                user = await db.get(User, user_id)
                if user is None:
                    user = User(
                        id=user_id,
                        display_name=display_name,
                        preferred_language=self._default_language,
                    )
                    db.add(user)
                    try:
                        await db.commit()
                    except IntegrityError:
                        # Another connection of the same user got there first
                        await db.rollback()
                        user = await db.get(User, user_id)
                elif display_name and user.display_name != display_name:
                    user.display_name = display_name
                    await db.commit()
                return user
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to provision user {user_id}: {e}") from e

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a user record without provisioning it."""
        try:
            async with self._session_factory() as db:
                return await db.get(User, user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load user {user_id}: {e}") from e


class MessageLog:
    """Append-only log of processed messages."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, message: Message) -> Message:
        """
        Persist one message record.

        Returns:
            The persisted message with its id assigned
        """
        try:
            async with self._session_factory() as db:
                db.add(message)
                await db.commit()
                await db.refresh(message)
                return message
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to append message {message.sender_id} -> {message.receiver_id}: {e}"
            ) from e

    async def recent(self, limit: int) -> List[Message]:
        """
        Get the most recent messages across all conversations.

        Returns:
            Up to `limit` messages ordered oldest-first (newest last)
        """
        stmt = select(Message).order_by(Message.id.desc()).limit(limit)
        return await self._fetch_newest_last(stmt)

    async def conversation(self, user_a: str, user_b: str, limit: int) -> List[Message]:
        """Get the most recent messages exchanged between two users, newest last."""
        stmt = (
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_a, Message.receiver_id == user_b),
                    and_(Message.sender_id == user_b, Message.receiver_id == user_a),
                )
            )
            .order_by(Message.id.desc())
            .limit(limit)
        )
        return await self._fetch_newest_last(stmt)

    async def contacts(self, user_id: str) -> List[str]:
        """
        Get everyone a user has exchanged messages with.

        Returns:
            Counterpart user ids, most recent conversation first
        """
        counterpart = case(
            (Message.sender_id == user_id, Message.receiver_id),
            else_=Message.sender_id,
        )
        stmt = (
            select(counterpart.label("contact_id"))
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .group_by("contact_id")
            .order_by(func.max(Message.id).desc())
        )
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                return [cid for cid in result.scalars().all() if cid != user_id]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list contacts for {user_id}: {e}") from e

    async def _fetch_newest_last(self, stmt) -> List[Message]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read message history: {e}") from e
        rows.reverse()
        return rows
