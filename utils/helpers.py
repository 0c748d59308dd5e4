"""
Helper utilities for the session server.

Small validation and generation helpers shared by the lobby models
and the socket handlers.
"""

import uuid
from typing import Any, Dict, List, Optional, Tuple
from .constants import GAME_CONFIG


def generate_player_id() -> str:
    """Generate a unique identifier for a roster entry."""
    return uuid.uuid4().hex


def validate_display_name(name: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a client-declared display name.

    Names are free text (the client is not limited to ASCII), so only
    emptiness and length are checked.

    Returns:
        tuple: (is_valid, error_message)
    """
    if not isinstance(name, str) or not name.strip():
        return False, "Display name cannot be empty"

    if len(name.strip()) > GAME_CONFIG['MAX_DISPLAY_NAME_LENGTH']:
        return False, f"Display name must be {GAME_CONFIG['MAX_DISPLAY_NAME_LENGTH']} characters or less"

    return True, None


def validate_session_key(key: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a session key sent by the client.

    Returns:
        tuple: (is_valid, error_message)
    """
    if isinstance(key, int) and not isinstance(key, bool):
        key = str(key)

    if not isinstance(key, str) or not key.strip():
        return False, "lobbyId is required"

    if len(key) > GAME_CONFIG['MAX_SESSION_KEY_LENGTH']:
        return False, "lobbyId is too long"

    return True, None


def normalize_stats_updates(raw: Any) -> List[Dict[str, Any]]:
    """
    Keep only well-formed ``{name, newStats}`` entries of a stat-delta list.

    The stat blobs themselves are opaque and are not inspected.

    Args:
        raw: The ``statsUpdates`` value from an action payload

    Returns:
        List of entries that name a player
    """
    if not isinstance(raw, list):
        return []
    return [
        update for update in raw
        if isinstance(update, dict) and isinstance(update.get('name'), str)
    ]


def without_keys(data: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Return a shallow copy of ``data`` minus the given keys."""
    return {k: v for k, v in data.items() if k not in keys}
