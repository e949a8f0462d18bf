'''Winner resolution over proposal vote counts.

The counts are given as a sequence indexed by proposal index. The winner is
the proposal with the strictly highest count; any equality at the top is
reported as a :class:`Tie`, even when nobody voted at all.
'''

from __future__ import annotations

from typing import List, Sequence

from votingflow.errors import NoProposalsError, TieDetectedError


class Tie(frozenset):
    '''Indices of proposals tied for the highest vote count.'''

    def __repr__(self) -> str:
        return f'Tie({sorted(self)!r})'


def leading_index(counts: Sequence[int]) -> int:
    '''Return the index of the first proposal with the highest count.

    A later proposal only takes the lead if its count is strictly greater,
    so among equal counts the lowest index is returned.

    :param counts: Vote counts of the proposals; must not be empty.
    '''
    if not counts:
        raise NoProposalsError()
    leader = 0
    for i, count in enumerate(counts):
        if count > counts[leader]:
            leader = i
    return leader


def tied_with(counts: Sequence[int], index: int) -> List[int]:
    '''Return indices of all other proposals with the same count as `index`.'''
    return [
        i for i, count in enumerate(counts)
        if i != index and count == counts[index]
    ]


def resolve_winner(counts: Sequence[int]) -> int:
    '''Return the index of the winning proposal.

    :param counts: Vote counts of the proposals.
    :raises NoProposalsError: If there are no proposals.
    :raises TieDetectedError: If the highest count is shared by more than
        one proposal.
    '''
    leader = leading_index(counts)
    others = tied_with(counts, leader)
    if others:
        raise TieDetectedError(Tie([leader] + others))
    return leader
