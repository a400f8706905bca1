"""
Connection Registry

Maps a user identity to the set of live connections it currently holds:
- Registration/unregistration with online/offline transitions
- Fan-out of one event to every connection of a user
- Presence queries

Delivery is best-effort. The message log is the system of record; a user
with no live connections simply misses the push.
"""
import asyncio
from typing import Dict, List, Set, Any, Optional
import logging

from chat_relay.services.exceptions import ValidationError
from chat_relay.services.metrics import live_connections_gauge, fan_out_deliveries
from chat_relay.services.protocols import ConnectionHandleProtocol

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Process-wide mapping of user_id -> set of live connection handles.

    All mutations go through one asyncio.Lock. Fan-out snapshots the set
    under the lock and sends outside it, so a slow receiver never blocks
    other users from connecting.
    """

    def __init__(self):
        # user_id -> {connection}
        self._connections: Dict[str, Set[ConnectionHandleProtocol]] = {}
        # connection -> user_id (reverse index, enforces single ownership)
        self._owners: Dict[ConnectionHandleProtocol, str] = {}
        self._lock = asyncio.Lock()

    # === Lifecycle ===

    async def register(self, user_id: str, connection: ConnectionHandleProtocol) -> bool:
        """
        Add a connection to the user's set.

        Returns:
            True if this is the user's first connection (offline -> online)
        """
        if not user_id:
            raise ValidationError("Connection rejected: missing user identity")

        async with self._lock:
            owner = self._owners.get(connection)
            if owner is not None and owner != user_id:
                raise ValidationError(
                    f"Connection already registered for user {owner}"
                )

            connections = self._connections.setdefault(user_id, set())
            came_online = not connections
            if connection not in connections:
                connections.add(connection)
                self._owners[connection] = user_id
                live_connections_gauge.inc()

        logger.info(
            f"User {user_id} registered connection "
            f"({len(connections)} active{', now online' if came_online else ''})"
        )
        return came_online

    async def unregister(self, user_id: str, connection: ConnectionHandleProtocol) -> bool:
        """
        Remove a connection. Unknown users or handles are ignored.

        Returns:
            True if this was the user's last connection (online -> offline)
        """
        async with self._lock:
            connections = self._connections.get(user_id)
            if not connections or connection not in connections:
                return False

            connections.discard(connection)
            self._owners.pop(connection, None)
            live_connections_gauge.dec()

            went_offline = not connections
            if went_offline:
                del self._connections[user_id]

        logger.info(
            f"User {user_id} unregistered connection"
            f"{' and is now offline' if went_offline else ''}"
        )
        return went_offline

    # === Delivery ===

    async def fan_out(self, user_id: str, event: Dict[str, Any]) -> int:
        """
        Deliver an event to every live connection of a user.

        Connections whose send fails are treated as dead and unregistered.

        Returns:
            Number of connections the event was delivered to (0 if offline)
        """
        async with self._lock:
            targets = list(self._connections.get(user_id, ()))

        if not targets:
            logger.debug(f"No live connections for {user_id}, skipping push")
            return 0

        results = await asyncio.gather(
            *(conn.send_json(event) for conn in targets),
            return_exceptions=True,
        )

        delivered = 0
        for conn, ok in zip(targets, results):
            if ok is True:
                delivered += 1
                continue
            if isinstance(ok, BaseException):
                logger.error(f"Send to {user_id} raised {type(ok).__name__}: {ok}")
            await self.unregister(user_id, conn)

        fan_out_deliveries.inc(delivered)
        return delivered

    async def broadcast_except(self, user_id: Optional[str], event: Dict[str, Any]) -> int:
        """Deliver an event to every online user except `user_id`."""
        async with self._lock:
            recipients = [uid for uid in self._connections if uid != user_id]

        sent_count = 0
        for uid in recipients:
            sent_count += await self.fan_out(uid, event)
        return sent_count

    # === Query Methods ===

    def is_online(self, user_id: str) -> bool:
        """Check if a user holds at least one live connection."""
        return bool(self._connections.get(user_id))

    def connection_count(self, user_id: str) -> int:
        """Get number of live connections for a user."""
        return len(self._connections.get(user_id, ()))

    def online_users(self) -> List[str]:
        """Get list of user IDs with at least one live connection."""
        return list(self._connections.keys())

    def get_total_connections(self) -> int:
        """Get total number of live connections."""
        return len(self._owners)
