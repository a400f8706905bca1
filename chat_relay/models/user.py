"""
User Model - Identity and Language Preference

Purpose: Store the relay's view of a user: an opaque identity token, an optional
display name and the language messages addressed to this user are translated into.

Key Fields:
- `id`: Opaque identity supplied by the caller (never generated by the relay)
- `preferred_language`: Language name (e.g. "English"). Overwritten with the detected
  language every time the user sends a message.
"""
from sqlalchemy import Column, String, DateTime
from datetime import datetime, UTC

from chat_relay.config.constants import LANGUAGE_NAME_MAX_LENGTH
from chat_relay.config.settings import settings
from .database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """User model for identity and language preference"""
    __tablename__ = "users"

    # Primary key - opaque identity token
    id = Column(String(255), primary_key=True)

    # Profile
    display_name = Column(String(255), nullable=True)

    # Language messages to this user are translated into
    preferred_language = Column(
        String(LANGUAGE_NAME_MAX_LENGTH),
        nullable=False,
        default=lambda: settings.DEFAULT_LANGUAGE,
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        """Convert to dictionary for JSON response"""
        return {
            "user_id": self.id,
            "display_name": self.display_name,
            "language": self.preferred_language,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} ({self.preferred_language})>"
