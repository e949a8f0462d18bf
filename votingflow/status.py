'''Workflow phases of an election.'''

from __future__ import annotations

import enum
from typing import Any


class WorkflowStatus(enum.IntEnum):
    '''The phase an election is in.

    The members are listed in the order in which an election normally passes
    through them. The order is not enforced anywhere; the administrator may
    set any phase at any time. What the phases do govern is which
    operations are allowed.
    '''
    REGISTERING_VOTERS = 0
    PROPOSALS_REGISTRATION_STARTED = 1
    PROPOSALS_REGISTRATION_ENDED = 2
    VOTING_SESSION_STARTED = 3
    VOTING_SESSION_ENDED = 4
    VOTES_TALLIED = 5

    @property
    def label(self) -> str:
        '''CamelCase name of the phase, e.g. ``VotingSessionStarted``.'''
        return ''.join(word.capitalize() for word in self.name.split('_'))

    @classmethod
    def parse(cls, value: Any) -> WorkflowStatus:
        '''Interpret a phase given as a member, code, name or label.

        :param value: A :class:`WorkflowStatus` member, its integer code,
            its name (``VOTES_TALLIED``) or its label (``VotesTallied``).
        :raises ValueError: If the value does not denote any phase.
        '''
        if isinstance(value, cls):
            return value
        elif isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        elif isinstance(value, str):
            for member in cls:
                if value in (member.name, member.label):
                    return member
        raise ValueError(f'unknown workflow status: {value!r}')

    def __str__(self) -> str:
        return self.label
