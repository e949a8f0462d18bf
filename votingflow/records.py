'''Participant and proposal records kept by an election.'''

from __future__ import annotations

from votingflow.persist import simple_serialization


@simple_serialization
class Participant:
    '''Voting rights and the vote of a single identifier.

    An identifier that was never registered is represented by a default
    (unregistered) record.

    :param is_registered: Whether the identifier is whitelisted and may
        submit proposals, vote and read election data.
    :param has_voted: Whether a vote was cast in the current voting session.
    :param voted_proposal_id: Index of the proposal voted for. Only meaningful
        if `has_voted` is set.
    '''
    def __init__(self,
                 is_registered: bool = False,
                 has_voted: bool = False,
                 voted_proposal_id: int = 0,
                 ):
        self.is_registered = is_registered
        self.has_voted = has_voted
        self.voted_proposal_id = voted_proposal_id

    def copy(self) -> Participant:
        return Participant(
            self.is_registered, self.has_voted, self.voted_proposal_id
        )

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Participant)
            and self.is_registered == other.is_registered
            and self.has_voted == other.has_voted
            and self.voted_proposal_id == other.voted_proposal_id
        )

    def __repr__(self) -> str:
        return (
            f'<Participant(registered={self.is_registered}'
            + (f',voted={self.voted_proposal_id}' if self.has_voted else '')
            + ')>'
        )


@simple_serialization
class Proposal:
    '''A proposal submitted for the vote.

    :param description: Text of the proposal, unique within the election.
    :param vote_count: Number of votes cast for the proposal so far.
    '''
    def __init__(self, description: str, vote_count: int = 0):
        self.description = description
        self.vote_count = vote_count

    def copy(self) -> Proposal:
        return Proposal(self.description, self.vote_count)

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Proposal)
            and self.description == other.description
            and self.vote_count == other.vote_count
        )

    def __repr__(self) -> str:
        return f'<Proposal({self.description!r},{self.vote_count})>'
