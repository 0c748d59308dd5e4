"""
Data models for session management.

These are pure data structures used to pass information between
the session registry, the game managers, and the handlers.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from datetime import datetime

from utils.constants import PLAYER_RESERVED_KEYS


@dataclass
class PlayerData:
    """Represents a player in a session roster.

    ``stats`` and ``extra`` are client data relayed as-is; the server never
    interprets them.
    """
    player_id: str
    name: str
    socket_id: str
    avatar_svg: Optional[str] = None
    stats: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)
    joined_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], player_id: str, socket_id: str) -> 'PlayerData':
        """Build a roster entry from a ``joinLobby`` player payload."""
        return cls(
            player_id=player_id,
            name=payload['name'].strip(),
            socket_id=socket_id,
            avatar_svg=payload.get('avatarSvg'),
            stats=payload.get('stats'),
            extra={k: v for k, v in payload.items() if k not in PLAYER_RESERVED_KEYS},
            joined_at=datetime.now()
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = dict(self.extra)
        data.update({
            'id': self.player_id,
            'name': self.name,
            'socketId': self.socket_id,
            'avatarSvg': self.avatar_svg,
            'stats': self.stats
        })
        return data


@dataclass
class OutboundEvent:
    """A broadcast produced by a session transition, not yet dispatched."""
    name: str
    payload: Any


@dataclass
class SessionListItem:
    """Lightweight session info for listing live sessions."""
    key: str
    player_count: int
    subscriber_count: int
    started: bool
    vote_open: bool
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'lobbyId': self.key,
            'player_count': self.player_count,
            'subscriber_count': self.subscriber_count,
            'started': self.started,
            'vote_open': self.vote_open,
            'created_at': self.created_at.isoformat()
        }
