"""
Utilities module for the session server.

This module contains wire constants and helper functions
used throughout the application.
"""

from .constants import (
    INBOUND_EVENTS, OUTBOUND_EVENTS, GAME_ACTIONS, TURN_STATES, VOTE_STATES,
    VOTE_CANCEL_REASONS, GAME_CONFIG
)
from .helpers import generate_player_id, validate_display_name, validate_session_key

__all__ = [
    'INBOUND_EVENTS',
    'OUTBOUND_EVENTS',
    'GAME_ACTIONS',
    'TURN_STATES',
    'VOTE_STATES',
    'VOTE_CANCEL_REASONS',
    'GAME_CONFIG',
    'generate_player_id',
    'validate_display_name',
    'validate_session_key'
]
