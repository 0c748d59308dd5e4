"""
Data models for game management.

These represent turn and vote data structures that live inside a session.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
from datetime import datetime


@dataclass
class BallotData:
    """A single ballot in an active vote."""
    voter_id: str
    voter_name: str
    choice: str
    cast_at: datetime


@dataclass
class VotingSession:
    """An open elimination vote.

    ``target`` is advisory display metadata; the outcome is driven by the
    ballots alone.
    """
    target: Optional[str]
    started_at: datetime
    started_by: Optional[str] = None
    deadline: Optional[datetime] = None
    ballots: Dict[str, BallotData] = field(default_factory=dict)  # voter_id -> BallotData

    @property
    def voter_ids(self) -> List[str]:
        """Ids of the players who have a ballot recorded."""
        return list(self.ballots.keys())

    def get_tally(self) -> Dict[str, int]:
        """Get ballot counts by chosen display name."""
        return dict(Counter(ballot.choice for ballot in self.ballots.values()))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the vote deadline has passed."""
        if not self.deadline:
            return False
        return (now or datetime.now()) >= self.deadline

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'target': self.target,
            'voters': {b.voter_name: b.choice for b in self.ballots.values()},
            'tally': self.get_tally(),
            'startedBy': self.started_by,
            'deadline': self.deadline.isoformat() if self.deadline else None
        }


@dataclass
class VoteResults:
    """Outcome of a resolved vote."""
    vote_counts: Dict[str, int] = field(default_factory=dict)  # choice -> count
    winner: Optional[str] = None
    tied_players: List[str] = field(default_factory=list)
    is_tie: bool = False
    total_votes: int = 0
