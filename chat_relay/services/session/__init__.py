"""
Session management module.

Provides the LiveSessionHandler for managing live WebSocket connections.
"""
from .handler import LiveSessionHandler

__all__ = ["LiveSessionHandler"]
