"""
Session aggregate for Trail by Elements.

A session is one game lobby: an ordered roster, the connections subscribed
to its broadcasts, a turn pointer and at most one open vote. Every public
operation applies a complete state transition and returns the broadcasts
it produced; rejected operations raise a ``SessionError`` and change nothing.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from game.errors import (
    ActorMismatch, GameNotStarted, InvalidPayload, InvalidRosterState, NotPlayersTurn,
    PlayerNotInRoster, SessionFull, VoteNotActive, VoterNotInRoster
)
from game.turn_manager import TurnManager
from game.vote_manager import VoteManager
from utils.constants import (
    GAME_CONFIG, OUTBOUND_EVENTS, VOTE_CANCEL_REASONS, VOTE_TIE_MESSAGE, VOTE_TIE_RESULT
)
from utils.helpers import (
    generate_player_id, normalize_stats_updates, validate_display_name, without_keys
)
from .models import OutboundEvent, PlayerData, SessionListItem

logger = logging.getLogger(__name__)


class Session:
    """One live game session and its roster, turn and vote state."""

    def __init__(self, key: str, max_players: int = GAME_CONFIG['MAX_PLAYERS_PER_SESSION'],
                 vote_timeout_seconds: int = 0, rng=None):
        """
        Initialize an empty session.

        Args:
            key: Opaque session key chosen by the clients
            max_players: Roster capacity
            vote_timeout_seconds: Deadline for open votes; 0 disables it
            rng: Optional random source for picking the first turn owner
        """
        self.key = key
        self.max_players = max_players
        self.players: List[PlayerData] = []
        self.subscribers: List[str] = []  # socket ids, in subscription order
        self.turns = TurnManager(key, rng=rng)
        self.votes = VoteManager(key, voting_timeout_seconds=vote_timeout_seconds)
        self.created_at = datetime.now()
        self.last_activity = self.created_at

    # ---- Roster queries ----

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def player_names(self) -> List[str]:
        return [p.name for p in self.players]

    def get_player_by_socket(self, socket_id: str) -> Optional[PlayerData]:
        """Find the roster entry bound to a connection."""
        for player in self.players:
            if player.socket_id == socket_id:
                return player
        return None

    def get_player_by_name(self, name: str) -> Optional[PlayerData]:
        """Find a roster entry by display name."""
        for player in self.players:
            if player.name == name:
                return player
        return None

    def has_connection(self, socket_id: str) -> bool:
        """Check if a connection is subscribed to or playing in this session."""
        return socket_id in self.subscribers or self.get_player_by_socket(socket_id) is not None

    # ---- Broadcast group ----

    def subscribe(self, socket_id: str) -> None:
        if socket_id not in self.subscribers:
            self.subscribers.append(socket_id)

    def unsubscribe(self, socket_id: str) -> None:
        if socket_id in self.subscribers:
            self.subscribers.remove(socket_id)

    # ---- Roster mutations ----

    def join(self, socket_id: str, payload: Any) -> List[OutboundEvent]:
        """
        Upsert a player into the roster and subscribe its connection.

        A display name already in the roster is a rejoin: the entry keeps its
        position and id and is rebound to the new connection. Any other entry
        held by the same connection is replaced.

        Args:
            socket_id: Connection id of the joining client
            payload: ``player`` object from the join event

        Returns:
            Broadcasts to dispatch
        """
        if not isinstance(payload, dict):
            raise InvalidPayload("player is required")

        is_valid, error_msg = validate_display_name(payload.get('name'))
        if not is_valid:
            raise InvalidPayload(error_msg)

        name = payload['name'].strip()
        same_name = self.get_player_by_name(name)
        same_socket = self.get_player_by_socket(socket_id)

        if same_name is None and len(self.players) - (1 if same_socket else 0) >= self.max_players:
            raise SessionFull(f"Session is full ({self.max_players} players max)")

        if same_socket is not None and same_socket is not same_name:
            self._remove_player(same_socket)
            logger.info(f"Replaced {same_socket.name} with {name} on connection {socket_id} in session {self.key}")

        if same_name is not None:
            player = PlayerData.from_payload(payload, same_name.player_id, socket_id)
            if 'stats' not in payload:
                player.stats = same_name.stats
            self.players[self.players.index(same_name)] = player
            if same_name.socket_id != socket_id:
                self.unsubscribe(same_name.socket_id)
            logger.info(f"Player {name} rejoined session {self.key} ({socket_id})")
        else:
            player = PlayerData.from_payload(payload, generate_player_id(), socket_id)
            self.players.append(player)
            logger.info(f"Player {name} joined session {self.key} ({socket_id})")

        self.subscribe(socket_id)
        self._touch()
        return self._after_roster_change() or [self._state_event()]

    def remove_connection(self, socket_id: str) -> Tuple[bool, List[OutboundEvent]]:
        """
        Remove whatever a connection holds in this session.

        Used for both an explicit leave and a transport disconnect.

        Returns:
            tuple: (was_present, broadcasts)
        """
        player = self.get_player_by_socket(socket_id)
        was_subscribed = socket_id in self.subscribers
        if player is None and not was_subscribed:
            return False, []

        self.unsubscribe(socket_id)
        if player is not None:
            self._remove_player(player)
            logger.info(f"Player {player.name} left session {self.key}")

        self._touch()
        return True, self._after_roster_change() or [self._state_event()]

    def leave(self, socket_id: str) -> List[OutboundEvent]:
        """Explicit leave; rejects connections with nothing in this session."""
        was_present, events = self.remove_connection(socket_id)
        if not was_present:
            raise PlayerNotInRoster("You are not in this session")
        return events

    # ---- Turns ----

    def start_game(self, socket_id: str) -> List[OutboundEvent]:
        """Pick a random first turn owner and announce it."""
        if self.is_empty:
            raise InvalidRosterState("Cannot start a game without players")
        self._require_player(socket_id)

        owner = self.turns.start_game(self.players)
        self._touch()
        return [
            OutboundEvent(OUTBOUND_EVENTS['GAME_STARTED'], {'lobby': self.to_dict()}),
            self._turn_event(owner),
        ]

    def end_turn(self, socket_id: str) -> List[OutboundEvent]:
        """Pass the turn to the next roster position."""
        self._require_turn_owner(socket_id)

        owner = self.turns.end_turn(self.players)
        self._touch()
        return [self._turn_event(owner), self._state_event()]

    def next_turn(self, socket_id: str, player_name: Any) -> List[OutboundEvent]:
        """Hand the turn to a named player."""
        if not isinstance(player_name, str) or not player_name:
            raise InvalidPayload("nextPlayerName is required")
        self._require_turn_owner(socket_id)

        owner = self.turns.set_turn(self.players, player_name)
        self._touch()
        return [self._turn_event(owner)]

    # ---- Votes ----

    def start_vote(self, socket_id: str, target: Any) -> List[OutboundEvent]:
        """Open an elimination vote; ``target`` is shown to players only."""
        starter = self._require_player(socket_id)
        if target is not None and not isinstance(target, str):
            raise InvalidPayload("targetName must be a string")

        vote = self.votes.start_vote(target, started_by=starter.name)
        self._touch()
        return [
            OutboundEvent(OUTBOUND_EVENTS['VOTE_STARTED'], {'target': target, 'vote': vote.to_dict()}),
            self._state_event(),
        ]

    def cast_vote(self, socket_id: str, choice: Any, voter_name: Any = None) -> List[OutboundEvent]:
        """
        Record the caller's ballot and resolve the vote if quorum is reached.

        Args:
            socket_id: Connection casting the ballot; identifies the voter
            choice: Display name the voter wants eliminated
            voter_name: Optional name the client claims to vote as

        Returns:
            Broadcasts to dispatch
        """
        if not self.votes.is_active:
            raise VoteNotActive("There is no vote in progress")

        voter = self.get_player_by_socket(socket_id)
        if voter is None:
            raise VoterNotInRoster("Only players in the session can vote")
        if voter_name is not None and voter_name != voter.name:
            raise ActorMismatch(f"Cannot vote as {voter_name}")
        if not isinstance(choice, str) or self.get_player_by_name(choice) is None:
            raise InvalidRosterState(f"Player {choice} is not in this session")

        self.votes.record_vote(voter.player_id, voter.name, choice)
        self._touch()

        events = [OutboundEvent(OUTBOUND_EVENTS['VOTE_UPDATE'], self.votes.active.to_dict())]
        if self.votes.is_quorum_reached(len(self.players)):
            events.extend(self._resolve_vote())
        return events

    def expire_vote(self, now: Optional[datetime] = None) -> List[OutboundEvent]:
        """Cancel the open vote if its deadline has passed."""
        if not self.votes.is_expired(now):
            return []
        return self._cancel_vote(VOTE_CANCEL_REASONS['TIMEOUT'])

    # ---- Relays ----

    def apply_action(self, outbound_event: str, data: Dict[str, Any]) -> List[OutboundEvent]:
        """
        Store relayed stat blobs on the named players and echo the action.

        Stat updates naming an absent player are skipped; values are not checked.
        """
        for update in normalize_stats_updates(data.get('statsUpdates')):
            player = self.get_player_by_name(update['name'])
            if player is not None:
                player.stats = update.get('newStats')

        self._touch()
        return [OutboundEvent(outbound_event, without_keys(data, 'lobbyId'))]

    def chat(self, data: Dict[str, Any]) -> List[OutboundEvent]:
        """Relay a chat message to the session."""
        self._touch()
        return [OutboundEvent(OUTBOUND_EVENTS['CHAT'], without_keys(data, 'lobbyId'))]

    # ---- Internals ----

    def _require_player(self, socket_id: str) -> PlayerData:
        player = self.get_player_by_socket(socket_id)
        if player is None:
            raise PlayerNotInRoster("You are not a player in this session")
        return player

    def _require_turn_owner(self, socket_id: str) -> PlayerData:
        if not self.turns.is_started:
            raise GameNotStarted("The game has not been started")
        player = self._require_player(socket_id)
        if not self.turns.is_turn_owner(self.players, player.player_id):
            raise NotPlayersTurn("It is not your turn")
        return player

    def _remove_player(self, player: PlayerData) -> None:
        self.players.remove(player)
        self.turns.renormalize(len(self.players))

    def _after_roster_change(self) -> List[OutboundEvent]:
        """Re-check an open vote against the changed roster."""
        if not self.votes.is_active:
            return []
        self.votes.discard_absent_ballots(p.player_id for p in self.players)
        if self.votes.is_quorum_reached(len(self.players)):
            return self._resolve_vote()
        return []

    def _resolve_vote(self) -> List[OutboundEvent]:
        results = self.votes.calculate_results()
        snapshot = self.votes.active.to_dict()

        if results.is_tie:
            self.votes.finalize()
            events = [
                OutboundEvent(OUTBOUND_EVENTS['VOTE_TIE'], {'message': VOTE_TIE_MESSAGE, 'vote': snapshot}),
                OutboundEvent(OUTBOUND_EVENTS['VOTE_RESULT'], VOTE_TIE_RESULT),
            ]
        else:
            eliminated = self.get_player_by_name(results.winner)
            if eliminated is None:
                logger.warning(f"Vote winner {results.winner} is no longer in session {self.key}")
                return self._cancel_vote(VOTE_CANCEL_REASONS['INVALID_ROSTER_STATE'])

            self.votes.finalize()
            self._remove_player(eliminated)
            logger.info(f"Player {eliminated.name} was eliminated from session {self.key}")
            events = [
                OutboundEvent(OUTBOUND_EVENTS['PLAYER_ELIMINATED'], {'name': eliminated.name}),
                OutboundEvent(OUTBOUND_EVENTS['VOTE_RESULT'], eliminated.name),
            ]

        events.append(self._state_event())
        owner = self.turns.current_player(self.players)
        if owner is not None:
            events.append(self._turn_event(owner))
        return events

    def _cancel_vote(self, reason: str) -> List[OutboundEvent]:
        cancelled = self.votes.cancel(reason)
        return [
            OutboundEvent(OUTBOUND_EVENTS['VOTE_CANCELLED'], {'reason': reason, 'vote': cancelled.to_dict()}),
            self._state_event(),
        ]

    def _state_event(self) -> OutboundEvent:
        return OutboundEvent(OUTBOUND_EVENTS['LOBBY_UPDATE'], self.to_dict())

    def _turn_event(self, owner: PlayerData) -> OutboundEvent:
        return OutboundEvent(OUTBOUND_EVENTS['TURN_UPDATE'], {'currentPlayerName': owner.name})

    def _touch(self) -> None:
        self.last_activity = datetime.now()

    # ---- Serialization ----

    def to_dict(self) -> Dict[str, Any]:
        """Full session state as broadcast in ``lobbyUpdate``."""
        return {
            'lobbyId': self.key,
            'players': [p.to_dict() for p in self.players],
            'turnIndex': self.turns.turn_index,
            'started': self.turns.is_started,
            'currentPlayerName': self.turns.get_current_player_name(self.players) if self.turns.is_started else None,
            'vote': self.votes.active.to_dict() if self.votes.active else None
        }

    def to_list_item(self) -> SessionListItem:
        return SessionListItem(
            key=self.key,
            player_count=len(self.players),
            subscriber_count=len(self.subscribers),
            started=self.turns.is_started,
            vote_open=self.votes.is_active,
            created_at=self.created_at
        )
