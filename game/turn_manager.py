"""
Turn Manager for Trail by Elements sessions.

Tracks the single active turn owner of a session as an index into the
session roster. The roster itself is owned by the session and passed in
on every call, so the pointer is always checked against the live roster.
"""

import random
import logging
from typing import Any, Optional, Sequence

from utils.constants import TURN_STATES
from .errors import GameNotStarted, InvalidRosterState

logger = logging.getLogger(__name__)


class TurnManager:
    """
    Turn pointer state machine: ``not_started`` -> ``in_progress``.

    Invariant: the pointer is a valid roster index whenever the roster is
    non-empty, and 0 when it is empty.
    """

    def __init__(self, session_key: str, rng=None):
        """
        Initialize the turn manager.

        Args:
            session_key: Key of the session this manager belongs to
            rng: Optional random source with ``randrange`` (defaults to the ``random`` module)
        """
        self.session_key = session_key
        self.rng = rng or random
        self.state = TURN_STATES['NOT_STARTED']
        self.turn_index = 0
        self.turn_number = 0

    @property
    def is_started(self) -> bool:
        """Check if the game has been started."""
        return self.state == TURN_STATES['IN_PROGRESS']

    def start_game(self, players: Sequence[Any]):
        """
        Start the game with a uniformly random turn owner.

        Args:
            players: Current roster

        Returns:
            The player who owns the first turn

        Raises:
            InvalidRosterState: If the roster is empty
        """
        if not players:
            raise InvalidRosterState("Cannot start a game without players")

        self.turn_index = self.rng.randrange(len(players))
        self.state = TURN_STATES['IN_PROGRESS']
        self.turn_number = 1

        owner = players[self.turn_index]
        logger.info(f"Started game in session {self.session_key}: first turn to {owner.name}")
        return owner

    def end_turn(self, players: Sequence[Any]):
        """
        Advance the pointer one position, wrapping around the roster.

        Returns:
            The new turn owner
        """
        self._require_started()
        if not players:
            raise InvalidRosterState("Cannot advance the turn of an empty roster")

        self.turn_index = (self.turn_index + 1) % len(players)
        self.turn_number += 1

        owner = players[self.turn_index]
        logger.debug(f"Session {self.session_key} turn {self.turn_number}: {owner.name}")
        return owner

    def set_turn(self, players: Sequence[Any], player_name: str):
        """
        Hand the turn to a named player.

        Args:
            players: Current roster
            player_name: Display name of the next turn owner

        Returns:
            The new turn owner

        Raises:
            InvalidRosterState: If no roster entry has that name
        """
        self._require_started()
        for index, player in enumerate(players):
            if player.name == player_name:
                self.turn_index = index
                self.turn_number += 1
                logger.debug(f"Session {self.session_key} turn {self.turn_number}: {player.name}")
                return player

        raise InvalidRosterState(f"Player {player_name} is not in this session")

    def renormalize(self, roster_size: int) -> None:
        """Bring the pointer back into range after the roster changed."""
        if roster_size <= 0:
            self.turn_index = 0
        else:
            self.turn_index %= roster_size

    def current_player(self, players: Sequence[Any]):
        """Get the player whose turn it is, or None for an empty roster."""
        if not players:
            return None
        return players[self.turn_index]

    def is_turn_owner(self, players: Sequence[Any], player_id: str) -> bool:
        """Check if the given roster entry owns the current turn."""
        owner = self.current_player(players)
        return owner is not None and owner.player_id == player_id

    def _require_started(self) -> None:
        if not self.is_started:
            raise GameNotStarted("The game has not been started")

    def get_current_player_name(self, players: Sequence[Any]) -> Optional[str]:
        """Get the display name of the current turn owner."""
        owner = self.current_player(players)
        return owner.name if owner else None
