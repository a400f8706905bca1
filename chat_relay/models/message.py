from sqlalchemy import Column, String, DateTime, Text, Integer
from datetime import datetime, UTC

from chat_relay.config.constants import LANGUAGE_NAME_MAX_LENGTH
from .database import Base


class Message(Base):
    """Append-only record of one processed peer message"""
    __tablename__ = "messages"

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Participants (plain identities, users are provisioned lazily)
    sender_id = Column(String(255), nullable=False, index=True)
    receiver_id = Column(String(255), nullable=False, index=True)

    # text | voice
    mode = Column(String(16), nullable=False, default="text")

    # Message content
    original_text = Column(Text, nullable=False)
    translated_text = Column(Text, nullable=True)

    # Languages at time of translation
    sender_language = Column(String(LANGUAGE_NAME_MAX_LENGTH), nullable=True)
    receiver_language = Column(String(LANGUAGE_NAME_MAX_LENGTH), nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    def to_dict(self):
        """Convert to dictionary for JSON response"""
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "mode": self.mode,
            "original": self.original_text,
            "translated": self.translated_text,
            "sender_language": self.sender_language,
            "receiver_language": self.receiver_language,
            "timestamp": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Message {self.id} {self.sender_id} -> {self.receiver_id}>"
