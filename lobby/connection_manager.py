"""
Connection Manager for Trail by Elements.

Tracks live Socket.IO connections and the opaque caller context each one
presented when it connected. Contains no session or game logic.
"""

import logging
from typing import Dict, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """Information about a live connection."""
    socket_id: str
    connected_at: datetime
    last_activity: datetime
    caller_context: Dict[str, Any] = field(default_factory=dict)
    events_handled: int = 0


class ConnectionManager:
    """
    Registry of live connections.

    Identity verification happens before a connection reaches the server;
    the caller context is stored as received and never interpreted here.
    """

    def __init__(self):
        self.connections: Dict[str, ConnectionInfo] = {}  # socket_id -> ConnectionInfo
        self.total_connections = 0
        logger.debug("Connection manager initialized")

    def register_connection(self, socket_id: str,
                            caller_context: Optional[Dict[str, Any]] = None) -> ConnectionInfo:
        """
        Register a new connection.

        Args:
            socket_id: Unique socket connection ID
            caller_context: Auth payload sent with the connection, if any

        Returns:
            The stored ConnectionInfo
        """
        now = datetime.now()
        info = ConnectionInfo(
            socket_id=socket_id,
            connected_at=now,
            last_activity=now,
            caller_context=dict(caller_context) if isinstance(caller_context, dict) else {}
        )
        self.connections[socket_id] = info
        self.total_connections += 1

        logger.info(f"Registered connection: {socket_id}")
        return info

    def unregister_connection(self, socket_id: str) -> Optional[ConnectionInfo]:
        """
        Unregister a connection.

        Returns:
            The removed ConnectionInfo, or None if it was not registered
        """
        info = self.connections.pop(socket_id, None)
        if info:
            logger.info(f"Unregistered connection: {socket_id} after {info.events_handled} events")
        return info

    def touch(self, socket_id: str) -> None:
        """Record activity on a connection."""
        info = self.connections.get(socket_id)
        if info:
            info.last_activity = datetime.now()
            info.events_handled += 1

    def get_connection_stats(self) -> Dict[str, Any]:
        """
        Get connection statistics.

        Returns:
            Dictionary with connection statistics
        """
        return {
            'live_connections': len(self.connections),
            'total_connections': self.total_connections
        }
