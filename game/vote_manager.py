"""
Vote Manager for Trail by Elements sessions.

Handles the single active elimination vote of a session: ballot
collection, the live quorum check and tally resolution.
Contains no roster logic - the session decides what an outcome means.
"""

import logging
from typing import Iterable, List, Optional
from datetime import datetime, timedelta

from utils.constants import VOTE_STATES
from .errors import VoteAlreadyActive, VoteNotActive
from .models import BallotData, VotingSession, VoteResults

logger = logging.getLogger(__name__)


class VoteManager:
    """
    Vote state machine: ``idle`` -> ``voting`` -> ``idle``.

    Quorum is dynamic: a vote resolves once every player currently in the
    roster has a ballot recorded, however many players that is right now.
    """

    def __init__(self, session_key: str, voting_timeout_seconds: int = 0):
        """
        Initialize vote manager.

        Args:
            session_key: Key of the session this manager belongs to
            voting_timeout_seconds: Deadline for an open vote; 0 means no deadline
        """
        self.session_key = session_key
        self.voting_timeout_seconds = voting_timeout_seconds
        self.active: Optional[VotingSession] = None

    @property
    def is_active(self) -> bool:
        return self.active is not None

    @property
    def state(self) -> str:
        return VOTE_STATES['VOTING'] if self.active else VOTE_STATES['IDLE']

    def start_vote(self, target: Optional[str], started_by: Optional[str] = None,
                   now: Optional[datetime] = None) -> VotingSession:
        """
        Open a vote with an empty ballot map.

        Args:
            target: Advisory name shown to players; does not steer the outcome
            started_by: Display name of the player who opened the vote
            now: Current time (for tests)

        Returns:
            The new VotingSession

        Raises:
            VoteAlreadyActive: If a vote is already open
        """
        if self.active:
            raise VoteAlreadyActive("A vote is already in progress")

        started_at = now or datetime.now()
        deadline = None
        if self.voting_timeout_seconds > 0:
            deadline = started_at + timedelta(seconds=self.voting_timeout_seconds)

        self.active = VotingSession(
            target=target,
            started_at=started_at,
            started_by=started_by,
            deadline=deadline
        )

        logger.info(f"Started vote in session {self.session_key} (target: {target}, deadline: {deadline})")
        return self.active

    def record_vote(self, voter_id: str, voter_name: str, choice: str,
                    now: Optional[datetime] = None) -> BallotData:
        """
        Record or overwrite a voter's single ballot.

        Args:
            voter_id: Roster id of the voter
            voter_name: Display name of the voter
            choice: Display name the voter wants eliminated

        Returns:
            The recorded ballot
        """
        if not self.active:
            raise VoteNotActive("There is no vote in progress")

        ballot = BallotData(
            voter_id=voter_id,
            voter_name=voter_name,
            choice=choice,
            cast_at=now or datetime.now()
        )
        previous = self.active.ballots.get(voter_id)
        self.active.ballots[voter_id] = ballot

        if previous:
            logger.debug(f"Changed vote in session {self.session_key}: {voter_name} {previous.choice} -> {choice}")
        else:
            logger.debug(f"Recorded vote in session {self.session_key}: {voter_name} -> {choice}")
        return ballot

    def discard_absent_ballots(self, present_ids: Iterable[str]) -> List[str]:
        """
        Drop ballots whose voter is no longer in the roster.

        Args:
            present_ids: Roster ids of the players currently present

        Returns:
            Display names of the voters whose ballots were dropped
        """
        if not self.active:
            return []

        present = set(present_ids)
        dropped = [
            voter_id for voter_id in self.active.ballots
            if voter_id not in present
        ]
        names = [self.active.ballots.pop(voter_id).voter_name for voter_id in dropped]

        if names:
            logger.info(f"Dropped ballots from departed voters in session {self.session_key}: {names}")
        return names

    def is_quorum_reached(self, roster_size: int) -> bool:
        """
        Check the live quorum.

        Args:
            roster_size: Number of players currently in the roster

        Returns:
            True when every present player has exactly one ballot recorded
        """
        if not self.active or roster_size <= 0:
            return False
        return len(self.active.ballots) == roster_size

    def calculate_results(self) -> VoteResults:
        """
        Tally the active vote.

        The unique top choice wins; a shared maximum is a tie.
        """
        if not self.active:
            raise VoteNotActive("There is no vote in progress")

        vote_counts = self.active.get_tally()
        total_votes = len(self.active.ballots)

        if not vote_counts:
            return VoteResults(total_votes=0)

        max_votes = max(vote_counts.values())
        top_choices = [choice for choice, count in vote_counts.items() if count == max_votes]

        if len(top_choices) > 1:
            return VoteResults(
                vote_counts=vote_counts,
                tied_players=top_choices,
                is_tie=True,
                total_votes=total_votes
            )

        return VoteResults(
            vote_counts=vote_counts,
            winner=top_choices[0],
            total_votes=total_votes
        )

    def finalize(self) -> VoteResults:
        """
        Resolve the active vote and return to idle.

        Returns:
            Final VoteResults
        """
        results = self.calculate_results()
        self.active = None

        logger.info(
            f"Resolved vote in session {self.session_key}: "
            f"{results.total_votes} ballots, winner: {results.winner}, tie: {results.is_tie}"
        )
        return results

    def cancel(self, reason: str) -> VotingSession:
        """
        Discard the active vote without a result.

        Returns:
            The discarded VotingSession
        """
        if not self.active:
            raise VoteNotActive("There is no vote in progress")

        cancelled, self.active = self.active, None
        logger.info(f"Cancelled vote in session {self.session_key}: {reason}")
        return cancelled

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the active vote has passed its deadline."""
        return bool(self.active and self.active.is_expired(now))
