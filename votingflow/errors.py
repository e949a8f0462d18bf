'''Errors raised by election operations.

Every error aborts the operation that raised it before any state change,
so the election is left exactly as it was before the call.
'''

from __future__ import annotations

from typing import Any, FrozenSet


class ElectionError(Exception):
    '''An election operation was rejected.'''
    pass


class UnauthorizedError(ElectionError):
    '''The caller lacks the role the operation requires.

    :param caller: Identifier of the rejected caller.
    :param role: The role that was required, ``administrator`` or ``voter``.
    '''
    def __init__(self, caller: Any, role: str):
        self.caller = caller
        self.role = role
        super().__init__(f'caller {caller!r} is not a registered {role}')


class WrongPhaseError(ElectionError):
    '''The election is not in the phase the operation requires.

    :param required: The phase the operation requires.
    :param current: The phase the election is in.
    '''
    def __init__(self, required, current):
        self.required = required
        self.current = current
        super().__init__(
            f'operation requires {required!s} status,'
            f' election is in {current!s}'
        )


class InvalidArgumentError(ElectionError):
    '''An argument is null, empty or out of range.'''
    pass


class ConflictError(ElectionError):
    '''The operation would duplicate a registration, proposal or vote.'''
    pass


class NoProposalsError(ElectionError):
    '''The operation requires at least one proposal and there is none.'''
    def __init__(self):
        super().__init__('no proposals have been registered')


class TieDetectedError(ElectionError):
    '''Two or more proposals share the highest vote count.

    :param tie: Indices of all proposals sharing the highest count.
    '''
    def __init__(self, tie: FrozenSet[int]):
        self.tie = tie
        super().__init__(
            'tie between proposals '
            + ', '.join(str(index) for index in sorted(tie))
        )
