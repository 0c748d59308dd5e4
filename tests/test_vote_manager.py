from datetime import datetime, timedelta

import pytest

from game import VoteAlreadyActive, VoteManager, VoteNotActive


def test_start_vote_opens_empty_ballot_map():
    votes = VoteManager('L1')
    vote = votes.start_vote('C', started_by='A')
    assert votes.is_active
    assert votes.state == 'voting'
    assert vote.to_dict()['voters'] == {}
    assert vote.to_dict()['tally'] == {}
    assert vote.deadline is None


def test_only_one_vote_at_a_time():
    votes = VoteManager('L1')
    votes.start_vote('C')
    with pytest.raises(VoteAlreadyActive):
        votes.start_vote('B')


def test_ballot_without_vote_is_rejected():
    with pytest.raises(VoteNotActive):
        VoteManager('L1').record_vote('id-a', 'A', 'B')


def test_revote_overwrites_previous_ballot():
    votes = VoteManager('L1')
    votes.start_vote(None)
    votes.record_vote('id-a', 'A', 'B')
    votes.record_vote('id-a', 'A', 'C')
    assert votes.active.get_tally() == {'C': 1}
    assert votes.active.to_dict()['voters'] == {'A': 'C'}


def test_quorum_is_live_roster_size():
    votes = VoteManager('L1')
    votes.start_vote(None)
    votes.record_vote('id-a', 'A', 'B')
    votes.record_vote('id-b', 'B', 'A')
    assert not votes.is_quorum_reached(3)
    assert votes.is_quorum_reached(2)


def test_quorum_never_reached_for_empty_roster():
    votes = VoteManager('L1')
    votes.start_vote(None)
    assert not votes.is_quorum_reached(0)


def test_discard_absent_ballots():
    votes = VoteManager('L1')
    votes.start_vote(None)
    votes.record_vote('id-a', 'A', 'B')
    votes.record_vote('id-b', 'B', 'A')
    dropped = votes.discard_absent_ballots(['id-b', 'id-c'])
    assert dropped == ['A']
    assert votes.active.voter_ids == ['id-b']


def test_unique_maximum_wins():
    votes = VoteManager('L1')
    votes.start_vote('C')
    votes.record_vote('id-a', 'A', 'C')
    votes.record_vote('id-b', 'B', 'C')
    votes.record_vote('id-c', 'C', 'A')
    results = votes.finalize()
    assert results.winner == 'C'
    assert not results.is_tie
    assert results.vote_counts == {'C': 2, 'A': 1}
    assert not votes.is_active


def test_shared_maximum_is_a_tie():
    votes = VoteManager('L1')
    votes.start_vote(None)
    votes.record_vote('id-a', 'A', 'X')
    votes.record_vote('id-b', 'B', 'Y')
    results = votes.finalize()
    assert results.is_tie
    assert results.winner is None
    assert sorted(results.tied_players) == ['X', 'Y']


def test_deadline_and_expiry():
    votes = VoteManager('L1', voting_timeout_seconds=30)
    start = datetime(2026, 1, 1, 12, 0, 0)
    vote = votes.start_vote(None, now=start)
    assert vote.deadline == start + timedelta(seconds=30)
    assert not votes.is_expired(start + timedelta(seconds=29))
    assert votes.is_expired(start + timedelta(seconds=30))


def test_cancel_returns_to_idle():
    votes = VoteManager('L1')
    votes.start_vote('B')
    cancelled = votes.cancel('timeout')
    assert cancelled.target == 'B'
    assert votes.state == 'idle'
    with pytest.raises(VoteNotActive):
        votes.cancel('timeout')
