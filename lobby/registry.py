"""
Process-wide session registry.

Owns every live Session by key. Sessions are created by the first join to
an unseen key and destroyed as soon as their roster empties.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from game.errors import SessionNotFound
from utils.constants import GAME_CONFIG
from .models import OutboundEvent, SessionListItem
from .session import Session

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Table of live sessions.

    ``lock`` serializes event processing: a handler holds it for the whole
    transition including its broadcasts, so no two mutations interleave.
    The registry is only safe within a single process.
    """

    def __init__(self, max_players: int = GAME_CONFIG['MAX_PLAYERS_PER_SESSION'],
                 vote_timeout_seconds: int = GAME_CONFIG['VOTE_TIMEOUT_SECONDS'], rng=None):
        """
        Initialize an empty registry.

        Args:
            max_players: Roster capacity given to new sessions
            vote_timeout_seconds: Vote deadline given to new sessions; 0 disables it
            rng: Optional random source shared by new sessions
        """
        self.max_players = max_players
        self.vote_timeout_seconds = vote_timeout_seconds
        self.rng = rng
        self.sessions: Dict[str, Session] = {}
        self.lock = threading.RLock()
        self.sessions_created = 0
        self.sessions_destroyed = 0

    def __len__(self) -> int:
        return len(self.sessions)

    def __contains__(self, key: str) -> bool:
        return key in self.sessions

    def get_or_create(self, key: str) -> Session:
        """
        Get a session, creating an empty one for an unseen key.

        Args:
            key: Session key

        Returns:
            The session for ``key``
        """
        session = self.sessions.get(key)
        if session is None:
            session = Session(
                key,
                max_players=self.max_players,
                vote_timeout_seconds=self.vote_timeout_seconds,
                rng=self.rng
            )
            self.sessions[key] = session
            self.sessions_created += 1
            logger.info(f"Created session {key}")
        return session

    def get(self, key: str) -> Session:
        """
        Get an existing session.

        Raises:
            SessionNotFound: If no session has that key
        """
        session = self.sessions.get(key)
        if session is None:
            raise SessionNotFound(f"Session {key} not found")
        return session

    def find(self, key: str) -> Optional[Session]:
        """Get a session or None."""
        return self.sessions.get(key)

    def join(self, key: str, socket_id: str, payload: Any) -> Tuple[Session, List[OutboundEvent]]:
        """
        Join a session, creating it if needed.

        A session created for a join that is then rejected is discarded again.

        Returns:
            tuple: (session, broadcasts)
        """
        session = self.get_or_create(key)
        try:
            events = session.join(socket_id, payload)
        finally:
            self.discard_if_empty(session)
        return session, events

    def find_sessions_by_connection(self, socket_id: str) -> List[Session]:
        """Scan every session for a connection (roster entry or subscription)."""
        return [s for s in self.sessions.values() if s.has_connection(socket_id)]

    def discard_if_empty(self, session: Session) -> bool:
        """
        Destroy a session whose roster has emptied.

        Returns:
            True if the session was destroyed
        """
        if not session.is_empty or self.sessions.get(session.key) is not session:
            return False
        del self.sessions[session.key]
        self.sessions_destroyed += 1
        logger.info(f"Destroyed empty session {session.key}")
        return True

    def expire_votes(self, now: Optional[datetime] = None) -> List[Tuple[Session, List[OutboundEvent]]]:
        """
        Cancel every open vote that has passed its deadline.

        Returns:
            List of (session, broadcasts) for the sessions that changed
        """
        expired = []
        for session in list(self.sessions.values()):
            events = session.expire_vote(now)
            if events:
                expired.append((session, events))
        return expired

    def list_sessions(self) -> List[SessionListItem]:
        """Get summaries of all live sessions."""
        return [s.to_list_item() for s in self.sessions.values()]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get registry statistics.

        Returns:
            Dictionary with session counters
        """
        return {
            'live_sessions': len(self.sessions),
            'players': sum(len(s.players) for s in self.sessions.values()),
            'open_votes': sum(1 for s in self.sessions.values() if s.votes.is_active),
            'sessions_created': self.sessions_created,
            'sessions_destroyed': self.sessions_destroyed
        }
