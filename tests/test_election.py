
import sys
import os
import itertools
import threading

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))
import votingflow.election
from votingflow.election import Election, NULL_ADDRESS
from votingflow.errors import UnauthorizedError, WrongPhaseError, \
    InvalidArgumentError, ConflictError, NoProposalsError, TieDetectedError
from votingflow.events import VoterRegistered, WorkflowStatusChange, \
    ProposalRegistered, Voted
from votingflow.records import Participant, Proposal
from votingflow.status import WorkflowStatus


ADMIN = 'owner'
VOTERS = ['alice', 'bob', 'carol']


def registered(voters=VOTERS):
    election = Election(ADMIN)
    for voter in voters:
        election.register_voter(ADMIN, voter)
    return election


def with_proposals(descriptions=('A', 'B', 'C'), voters=VOTERS):
    election = registered(voters)
    election.set_status(ADMIN, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    for description in descriptions:
        election.submit_proposal(voters[0], description)
    return election


def voting(descriptions=('A', 'B', 'C'), voters=VOTERS):
    election = with_proposals(descriptions, voters)
    election.set_status(ADMIN, WorkflowStatus.VOTING_SESSION_STARTED)
    return election


def tallied(counts, descriptions=None):
    '''Create an election with votes tallied, one voter per vote cast.'''
    if descriptions is None:
        descriptions = [chr(ord('A') + i) for i in range(len(counts))]
    voters = ['proposer'] + [f'voter{i}' for i in range(sum(counts))]
    election = voting(descriptions, voters)
    voter_iter = iter(voters[1:])
    for proposal_id, count in enumerate(counts):
        for _ in range(count):
            election.cast_vote(next(voter_iter), proposal_id)
    election.set_status(ADMIN, WorkflowStatus.VOTES_TALLIED)
    return election


def test_initial_state():
    election = Election(ADMIN)
    assert election.get_status(ADMIN) == WorkflowStatus.REGISTERING_VOTERS
    assert len(election.events) == 0


@pytest.mark.parametrize('admin', [None, NULL_ADDRESS])
def test_null_admin(admin):
    with pytest.raises(InvalidArgumentError):
        Election(admin)


@pytest.mark.parametrize(('previous', 'new'), list(itertools.product(
    WorkflowStatus, WorkflowStatus
)))
def test_set_status_any_order(previous, new):
    election = Election(ADMIN)
    election.set_status(ADMIN, previous)
    election.set_status(ADMIN, new)
    assert election.get_status(ADMIN) == new
    assert election.events[-1] == WorkflowStatusChange(previous, new)


@pytest.mark.parametrize(('value', 'expected'), [
    ('VotingSessionStarted', WorkflowStatus.VOTING_SESSION_STARTED),
    ('VOTES_TALLIED', WorkflowStatus.VOTES_TALLIED),
    (2, WorkflowStatus.PROPOSALS_REGISTRATION_ENDED),
])
def test_set_status_parsed(value, expected):
    election = Election(ADMIN)
    election.set_status(ADMIN, value)
    assert election.get_status(ADMIN) == expected


@pytest.mark.parametrize('value', ['Finished', 6, -1, None])
def test_set_status_invalid(value):
    election = Election(ADMIN)
    with pytest.raises(InvalidArgumentError):
        election.set_status(ADMIN, value)
    assert election.get_status(ADMIN) == WorkflowStatus.REGISTERING_VOTERS
    assert len(election.events) == 0


@pytest.mark.parametrize('caller', ['alice', 'mallory', None, NULL_ADDRESS])
def test_status_admin_only(caller):
    election = registered()
    with pytest.raises(UnauthorizedError):
        election.set_status(caller, WorkflowStatus.VOTES_TALLIED)
    with pytest.raises(UnauthorizedError):
        election.get_status(caller)
    assert election.get_status(ADMIN) == WorkflowStatus.REGISTERING_VOTERS


def test_register_voter():
    election = Election(ADMIN)
    election.register_voter(ADMIN, 'alice')
    election.register_voter(ADMIN, 'bob')
    assert election.get_participant('alice', 'bob') == Participant(
        is_registered=True, has_voted=False, voted_proposal_id=0
    )
    assert election.list_registered_addresses('bob') == ['alice', 'bob']
    assert list(election.events) == [
        VoterRegistered('alice'), VoterRegistered('bob')
    ]


def test_register_voter_twice():
    election = registered()
    with pytest.raises(ConflictError):
        election.register_voter(ADMIN, 'bob')
    assert election.list_registered_addresses('bob') == VOTERS


@pytest.mark.parametrize('identifier', [None, NULL_ADDRESS])
def test_register_null(identifier):
    election = Election(ADMIN)
    with pytest.raises(InvalidArgumentError):
        election.register_voter(ADMIN, identifier)


def test_register_custom_null():
    election = Election(1, null_identifier=0)
    with pytest.raises(InvalidArgumentError):
        election.register_voter(1, 0)
    election.register_voter(1, NULL_ADDRESS)
    assert election.list_registered_addresses(NULL_ADDRESS) == [NULL_ADDRESS]


def test_register_voter_rejections():
    election = registered()
    with pytest.raises(UnauthorizedError):
        election.register_voter('alice', 'dave')
    election.set_status(ADMIN, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    with pytest.raises(WrongPhaseError) as excinfo:
        election.register_voter(ADMIN, 'dave')
    assert excinfo.value.required == WorkflowStatus.REGISTERING_VOTERS
    assert excinfo.value.current == \
        WorkflowStatus.PROPOSALS_REGISTRATION_STARTED
    assert 'RegisteringVoters' in str(excinfo.value)


def test_submit_proposal():
    election = registered()
    election.set_status(ADMIN, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    assert election.submit_proposal('alice', 'Park') == 0
    assert election.submit_proposal('bob', 'Library') == 1
    assert election.list_proposals('carol') == [
        Proposal('Park', 0), Proposal('Library', 0)
    ]
    assert list(election.events)[-2:] == [
        ProposalRegistered(0), ProposalRegistered(1)
    ]


def test_submit_duplicate_of_first():
    election = with_proposals(['A', 'B', 'C', 'D'])
    with pytest.raises(ConflictError):
        election.submit_proposal('bob', 'A')
    assert len(election.list_proposals('bob')) == 4


def test_submit_case_sensitive():
    election = with_proposals(['Park'])
    assert election.submit_proposal('bob', 'park') == 1


@pytest.mark.parametrize('description', ['', None, 5])
def test_submit_empty(description):
    election = with_proposals([])
    with pytest.raises(InvalidArgumentError):
        election.submit_proposal('alice', description)


@pytest.mark.parametrize('caller', [ADMIN, 'mallory', NULL_ADDRESS])
def test_submit_unregistered(caller):
    election = with_proposals([])
    with pytest.raises(UnauthorizedError):
        election.submit_proposal(caller, 'Park')


@pytest.mark.parametrize('status', [
    s for s in WorkflowStatus
    if s != WorkflowStatus.PROPOSALS_REGISTRATION_STARTED
])
def test_submit_wrong_phase(status):
    election = registered()
    election.set_status(ADMIN, status)
    with pytest.raises(WrongPhaseError):
        election.submit_proposal('alice', 'Park')


def test_role_checked_before_phase():
    election = registered()
    with pytest.raises(UnauthorizedError):
        election.submit_proposal('mallory', 'Park')


def test_cast_vote():
    election = voting()
    election.cast_vote('bob', 2)
    assert election.get_participant('alice', 'bob') == Participant(
        is_registered=True, has_voted=True, voted_proposal_id=2
    )
    assert election.list_proposals('alice')[2].vote_count == 1
    assert election.events[-1] == Voted('bob', 2)
    election.cast_vote('carol', 2)
    assert [p.vote_count for p in election.list_proposals('alice')] == \
        [0, 0, 2]


def test_cast_vote_twice():
    election = voting()
    election.cast_vote('alice', 0)
    n_events = len(election.events)
    with pytest.raises(ConflictError):
        election.cast_vote('alice', 1)
    assert [p.vote_count for p in election.list_proposals('alice')] == \
        [1, 0, 0]
    assert election.get_participant('alice', 'alice').voted_proposal_id == 0
    assert len(election.events) == n_events


@pytest.mark.parametrize('proposal_id', [-1, 3, 100, True, '0', None])
def test_cast_vote_out_of_range(proposal_id):
    election = voting()
    with pytest.raises(InvalidArgumentError):
        election.cast_vote('alice', proposal_id)
    assert not election.get_participant('alice', 'alice').has_voted


def test_cast_vote_no_proposals():
    election = voting([])
    with pytest.raises(NoProposalsError):
        election.cast_vote('alice', 0)


def test_cast_vote_rejections():
    election = with_proposals()
    with pytest.raises(WrongPhaseError):
        election.cast_vote('alice', 0)
    election.set_status(ADMIN, WorkflowStatus.VOTING_SESSION_STARTED)
    with pytest.raises(UnauthorizedError):
        election.cast_vote(ADMIN, 0)


@pytest.mark.parametrize(('counts', 'winner'), [
    ([1, 5, 3], 'B'),
    ([0], 'A'),
    ([4, 0, 0], 'A'),
    ([0, 0, 1], 'C'),
])
def test_get_winner(counts, winner):
    assert tallied(counts).get_winner('proposer') == winner


@pytest.mark.parametrize(('counts', 'tie'), [
    ([3, 5, 5], {1, 2}),
    ([5, 5, 1], {0, 1}),
    ([2, 1, 2], {0, 2}),
    ([0, 0], {0, 1}),
    ([0, 0, 0], {0, 1, 2}),
])
def test_get_winner_tie(counts, tie):
    election = tallied(counts)
    with pytest.raises(TieDetectedError) as excinfo:
        election.get_winner('proposer')
    assert excinfo.value.tie == tie


def test_get_winner_rejections():
    election = tallied([1, 0])
    with pytest.raises(UnauthorizedError):
        election.get_winner(ADMIN)
    election.set_status(ADMIN, WorkflowStatus.VOTING_SESSION_ENDED)
    with pytest.raises(WrongPhaseError):
        election.get_winner('proposer')


def test_get_winner_no_proposals():
    election = registered()
    election.set_status(ADMIN, WorkflowStatus.VOTES_TALLIED)
    with pytest.raises(NoProposalsError):
        election.get_winner('alice')


def test_accessors_return_copies():
    election = voting()
    election.list_proposals('alice')[0].vote_count = 10
    election.list_registered_addresses('alice').append('mallory')
    election.get_participant('alice', 'bob').has_voted = True
    assert election.list_proposals('alice')[0].vote_count == 0
    assert election.list_registered_addresses('alice') == VOTERS
    election.cast_vote('bob', 0)


def test_get_participant_unknown():
    election = registered()
    assert election.get_participant('alice', 'mallory') == Participant()


@pytest.mark.parametrize('identifier', [None, NULL_ADDRESS])
def test_get_participant_null(identifier):
    election = registered()
    with pytest.raises(InvalidArgumentError):
        election.get_participant('alice', identifier)


@pytest.mark.parametrize('accessor', [
    lambda e, caller: e.list_proposals(caller),
    lambda e, caller: e.list_registered_addresses(caller),
    lambda e, caller: e.get_participant(caller, 'alice'),
])
def test_accessors_voters_only(accessor):
    election = registered()
    accessor(election, 'alice')
    with pytest.raises(UnauthorizedError):
        accessor(election, ADMIN)
    with pytest.raises(UnauthorizedError):
        accessor(election, 'mallory')


def test_rejection_logged(caplog):
    election = registered()
    with caplog.at_level('DEBUG', logger=votingflow.election.__name__):
        with pytest.raises(ConflictError):
            election.register_voter(ADMIN, 'alice')
    assert 'register_voter rejected' in caplog.text


def run_in_threads(targets):
    threads = [threading.Thread(target=target) for target in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def test_concurrent_calls():
    voters = [f'voter{i}' for i in range(100)]
    election = Election(ADMIN)
    conflicts = []

    def attempt(call, *args):
        def target():
            try:
                call(*args)
            except ConflictError as err:
                conflicts.append(err)
        return target

    # every voter is registered from two threads at once
    run_in_threads([
        attempt(election.register_voter, ADMIN, voter)
        for voter in voters * 2
    ])
    assert len(conflicts) == len(voters)
    assert sorted(election.list_registered_addresses(voters[0])) == \
        sorted(voters)
    election.set_status(ADMIN, WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
    election.submit_proposal(voters[0], 'A')
    election.submit_proposal(voters[0], 'B')
    election.set_status(ADMIN, WorkflowStatus.VOTING_SESSION_STARTED)
    del conflicts[:]
    # and then votes from two threads at once, for different proposals
    run_in_threads(
        [attempt(election.cast_vote, voter, 0) for voter in voters]
        + [attempt(election.cast_vote, voter, 1) for voter in voters]
    )
    assert len(conflicts) == len(voters)
    proposals = election.list_proposals(voters[0])
    assert sum(prop.vote_count for prop in proposals) == len(voters)
    records = [election.get_participant(voters[0], v) for v in voters]
    assert all(record.has_voted for record in records)
    assert [
        sum(1 for r in records if r.voted_proposal_id == i) for i in (0, 1)
    ] == [prop.vote_count for prop in proposals]
    assert sum(1 for event in election.events if isinstance(event, Voted)) \
        == len(voters)


def test_tally_admin_only():
    election = tallied([2, 1])
    assert election.tally(ADMIN) == [Proposal('A', 2), Proposal('B', 1)]
    election.tally(ADMIN)[0].vote_count = 0
    assert election.tally(ADMIN)[0].vote_count == 2
    with pytest.raises(UnauthorizedError):
        election.tally('proposer')


def test_repr_after_rejected_admin():
    election = Election.__new__(Election)
    with pytest.raises(InvalidArgumentError):
        election.__init__(NULL_ADDRESS)
    assert repr(election) == \
        f'<Election({NULL_ADDRESS!r},RegisteringVoters,0 voters,0 proposals)>'
