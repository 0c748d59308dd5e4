"""
Lobby Module for Trail by Elements.

Contains session lifecycle management: the session registry, the
session aggregate and connection tracking.
"""

from .models import PlayerData, OutboundEvent, SessionListItem
from .session import Session
from .registry import SessionRegistry
from .connection_manager import ConnectionManager, ConnectionInfo

__all__ = [
    # Data models
    'PlayerData',
    'OutboundEvent',
    'SessionListItem',
    'ConnectionInfo',

    # Managers
    'Session',
    'SessionRegistry',
    'ConnectionManager'
]
