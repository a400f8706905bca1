"""
Database Models Package

This module exports all SQLAlchemy models for the chat relay.

Tables:
1. users - Identity and preferred language
2. messages - Append-only log of processed messages
"""

from .database import (
    engine,
    AsyncSessionLocal,
    Base,
    build_engine,
    init_db,
)

from .user import User
from .message import Message

__all__ = [
    # Database utilities
    "engine",
    "AsyncSessionLocal",
    "Base",
    "build_engine",
    "init_db",

    # Models
    "User",
    "Message",
]
