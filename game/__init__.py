"""
Game Module for Trail by Elements.

Contains the turn and vote state machines that run inside a session,
plus the error taxonomy shared by every session operation.
"""

from .models import BallotData, VotingSession, VoteResults
from .turn_manager import TurnManager
from .vote_manager import VoteManager
from .errors import (
    SessionError, SessionNotFound, VoteNotActive, VoteAlreadyActive,
    PlayerNotInRoster, VoterNotInRoster, InvalidRosterState, ActorMismatch, NotPlayersTurn,
    GameNotStarted, SessionFull, InvalidPayload
)

__all__ = [
    # Data models
    'BallotData',
    'VotingSession',
    'VoteResults',

    # Managers
    'TurnManager',
    'VoteManager',

    # Errors
    'SessionError',
    'SessionNotFound',
    'VoteNotActive',
    'VoteAlreadyActive',
    'PlayerNotInRoster',
    'VoterNotInRoster',
    'InvalidRosterState',
    'ActorMismatch',
    'NotPlayersTurn',
    'GameNotStarted',
    'SessionFull',
    'InvalidPayload'
]
