"""
Per-session broadcast dispatcher.

Each session keeps its own subscriber list of connection ids; the
dispatcher walks that list for every outbound event instead of relying
on Socket.IO rooms.
"""

import logging
from typing import Any, Iterable

from lobby.models import OutboundEvent

logger = logging.getLogger(__name__)


class SessionBroadcaster:
    """Sends session broadcasts and point-to-point replies through Socket.IO."""

    def __init__(self, socketio, namespace: str = '/'):
        """
        Args:
            socketio: SocketIO instance
            namespace: Namespace the handlers are registered on
        """
        self.socketio = socketio
        self.namespace = namespace

    def dispatch(self, session, events: Iterable[OutboundEvent]) -> None:
        """Send each event, in order, to every subscriber of the session."""
        for event in events:
            subscribers = list(session.subscribers)
            for socket_id in subscribers:
                self.socketio.emit(event.name, event.payload, to=socket_id, namespace=self.namespace)
            logger.debug(f"Broadcast {event.name} to {len(subscribers)} connections in session {session.key}")

    def reply(self, socket_id: str, event_name: str, payload: Any) -> None:
        """Send an event to a single connection."""
        self.socketio.emit(event_name, payload, to=socket_id, namespace=self.namespace)
