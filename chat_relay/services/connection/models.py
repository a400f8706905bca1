"""
Connection Models

Classes representing live WebSocket connections.
"""
from datetime import datetime, UTC
from typing import Dict, Any, Optional
import logging
import uuid

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class LiveConnection:
    """Represents a single live WebSocket session owned by one user."""

    def __init__(
        self,
        websocket: WebSocket,
        user_id: str,
        display_name: Optional[str] = None
    ):
        self.websocket = websocket
        self.user_id = user_id
        self.display_name = display_name
        self.connection_id = uuid.uuid4().hex
        self.connected_at = datetime.now(UTC)

    async def send_json(self, data: Dict[str, Any]) -> bool:
        """Send JSON message to this connection."""
        try:
            await self.websocket.send_json(data)
            return True
        except Exception as e:
            logger.error(f"Error sending JSON to {self.user_id} ({self.connection_id}): {e}")
            return False

    def __repr__(self):
        return f"<LiveConnection {self.connection_id[:8]} user={self.user_id}>"
