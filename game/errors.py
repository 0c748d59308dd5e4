"""
Error taxonomy for session operations.

Core code raises these; the connection gateway turns them into a
point-to-point ``error`` reply to the connection that sent the event.
"""


class SessionError(Exception):
    """Base class for rejected session operations."""

    code = 'session_error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self, event: str = None) -> dict:
        """Convert to the wire error payload."""
        return {
            'code': self.code,
            'message': self.message,
            'event': event,
        }


class SessionNotFound(SessionError):
    code = 'session_not_found'


class VoteNotActive(SessionError):
    code = 'vote_not_active'


class VoteAlreadyActive(SessionError):
    code = 'vote_already_active'


class PlayerNotInRoster(SessionError):
    """Acting connection has no roster entry in the session."""
    code = 'player_not_in_roster'


class VoterNotInRoster(PlayerNotInRoster):
    code = 'voter_not_in_roster'


class InvalidRosterState(SessionError):
    """Operation needs a non-empty roster or names a player who is not present."""
    code = 'invalid_roster_state'


class ActorMismatch(SessionError):
    """Caller claimed to act as a roster entry that is not bound to its connection."""
    code = 'actor_mismatch'


class NotPlayersTurn(SessionError):
    code = 'not_players_turn'


class GameNotStarted(SessionError):
    code = 'game_not_started'


class SessionFull(SessionError):
    code = 'session_full'


class InvalidPayload(SessionError):
    code = 'invalid_payload'
