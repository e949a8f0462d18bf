'''The election workflow: whitelist, proposals, votes and tallying.

An :class:`Election` is driven by a single administrator and a whitelist of
voters through a sequence of phases (see
:class:`votingflow.status.WorkflowStatus`):

1.  While registering voters, the administrator whitelists voter identifiers.
2.  While proposal registration is open, voters submit proposals.
3.  While the voting session is open, every voter casts one vote.
4.  Once votes are tallied, voters can ask for the winning proposal.

The administrator switches phases freely; each operation checks only that the
election is in the phase the operation requires. Every operation takes the
identifier of its caller as its first argument. Identity is assumed to be
verified by whoever calls the election.

Every operation is atomic: it either fails with a subclass of
:class:`votingflow.errors.ElectionError` and leaves the election untouched,
or fully applies its changes and then appends its notifications to the
election's event log.
'''

from __future__ import annotations

import logging
import functools
import threading
from typing import Any, List, Dict, Optional

import votingflow.tally
from votingflow.errors import ElectionError, UnauthorizedError, \
    WrongPhaseError, InvalidArgumentError, ConflictError, NoProposalsError
from votingflow.events import EventLog, VoterRegistered, \
    WorkflowStatusChange, ProposalRegistered, Voted
from votingflow.persist import scoped_class_name, serialize_value, \
    deserialize_value
from votingflow.records import Participant, Proposal
from votingflow.status import WorkflowStatus


NULL_ADDRESS: str = '0x' + '0' * 40

logger = logging.getLogger(__name__)


def synchronized(method):
    '''Run the election method under the election's lock.

    Rejected calls are logged at debug level and re-raised.
    '''
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except ElectionError as err:
                logger.debug('%s rejected: %s', method.__name__, err)
                raise
    return wrapper


class Election:
    '''A single election with whitelisted voters.

    :param admin: Identifier of the administrator, the only caller allowed
        to change phases, whitelist voters and reset the election.
    :param null_identifier: Identifier value that never denotes a caller;
        None is always treated as null as well.
    :param events: Event log to append notifications to. A new empty log is
        created if not given.
    '''
    def __init__(self,
                 admin: Any,
                 null_identifier: Any = NULL_ADDRESS,
                 events: Optional[EventLog] = None,
                 ):
        self.admin = admin
        self.null_identifier = null_identifier
        self.events = EventLog() if events is None else events
        self._status = WorkflowStatus.REGISTERING_VOTERS
        self._participants: Dict[Any, Participant] = {}
        self._roster: List[Any] = []
        self._proposals: List[Proposal] = []
        self._lock = threading.RLock()
        if self.is_null(admin):
            raise InvalidArgumentError('administrator must not be null')

    def is_null(self, identifier: Any) -> bool:
        return identifier is None or identifier == self.null_identifier

    def _require_admin(self, caller: Any) -> None:
        if self.is_null(caller) or caller != self.admin:
            raise UnauthorizedError(caller, 'administrator')

    def _require_voter(self, caller: Any) -> None:
        record = self._participants.get(caller)
        if record is None or not record.is_registered:
            raise UnauthorizedError(caller, 'voter')

    def _require_status(self, required: WorkflowStatus) -> None:
        if self._status != required:
            raise WrongPhaseError(required, self._status)

    def _require_proposals(self) -> None:
        if not self._proposals:
            raise NoProposalsError()

    def _change_status(self,
                       new_status: WorkflowStatus,
                       announced_from: Optional[WorkflowStatus] = None,
                       ) -> None:
        previous = self._status if announced_from is None else announced_from
        self._status = new_status
        logger.info('workflow status changed: %s -> %s', previous, new_status)
        self.events.append(WorkflowStatusChange(previous, new_status))

    @synchronized
    def set_status(self, caller: Any, new_status: Any) -> None:
        '''Switch the election to any phase.

        No transition order is enforced.

        :param caller: Must be the administrator.
        :param new_status: The new phase, in any form accepted by
            :meth:`WorkflowStatus.parse`.
        '''
        self._require_admin(caller)
        try:
            status = WorkflowStatus.parse(new_status)
        except ValueError as err:
            raise InvalidArgumentError(str(err)) from err
        self._change_status(status)

    @synchronized
    def get_status(self, caller: Any) -> WorkflowStatus:
        self._require_admin(caller)
        return self._status

    @synchronized
    def register_voter(self, caller: Any, identifier: Any) -> None:
        '''Whitelist a voter.

        :param caller: Must be the administrator.
        :param identifier: Identifier of the voter; must not be null or
            already registered.
        '''
        self._require_admin(caller)
        self._require_status(WorkflowStatus.REGISTERING_VOTERS)
        if self.is_null(identifier):
            raise InvalidArgumentError('cannot register the null identifier')
        record = self._participants.get(identifier)
        if record is not None and record.is_registered:
            raise ConflictError(f'voter {identifier!r} already registered')
        self._participants[identifier] = Participant(is_registered=True)
        self._roster.append(identifier)
        logger.info('registered voter %r', identifier)
        self.events.append(VoterRegistered(identifier))

    @synchronized
    def submit_proposal(self, caller: Any, description: str) -> int:
        '''Register a new proposal to vote on.

        :param caller: Must be a registered voter.
        :param description: Text of the proposal; must be non-empty and
            different from all proposals registered so far.
        :returns: Index of the new proposal.
        '''
        self._require_voter(caller)
        self._require_status(WorkflowStatus.PROPOSALS_REGISTRATION_STARTED)
        if not isinstance(description, str) or not description:
            raise InvalidArgumentError('proposal description must not be empty')
        if any(prop.description == description for prop in self._proposals):
            raise ConflictError(f'proposal {description!r} already exists')
        self._proposals.append(Proposal(description))
        proposal_id = len(self._proposals) - 1
        logger.info('%r registered proposal %d: %r',
                    caller, proposal_id, description)
        self.events.append(ProposalRegistered(proposal_id))
        return proposal_id

    @synchronized
    def cast_vote(self, caller: Any, proposal_id: int) -> None:
        '''Vote for a proposal.

        Each voter can only vote once per voting session.

        :param caller: Must be a registered voter.
        :param proposal_id: Index of the proposal to vote for.
        '''
        self._require_voter(caller)
        self._require_status(WorkflowStatus.VOTING_SESSION_STARTED)
        self._require_proposals()
        if (
            not isinstance(proposal_id, int)
            or isinstance(proposal_id, bool)
            or not 0 <= proposal_id < len(self._proposals)
        ):
            raise InvalidArgumentError(f'no proposal with id {proposal_id!r}')
        record = self._participants[caller]
        if record.has_voted:
            raise ConflictError(f'voter {caller!r} has already voted')
        record.voted_proposal_id = proposal_id
        record.has_voted = True
        self._proposals[proposal_id].vote_count += 1
        logger.info('%r voted for proposal %d', caller, proposal_id)
        self.events.append(Voted(caller, proposal_id))

    @synchronized
    def get_winner(self, caller: Any) -> str:
        '''Return the description of the winning proposal.

        :param caller: Must be a registered voter.
        :raises TieDetectedError: If more than one proposal has the highest
            vote count; this includes the case where nobody voted and there
            is more than one proposal.
        '''
        self._require_voter(caller)
        self._require_status(WorkflowStatus.VOTES_TALLIED)
        self._require_proposals()
        winner = votingflow.tally.resolve_winner(
            [prop.vote_count for prop in self._proposals]
        )
        return self._proposals[winner].description

    @synchronized
    def reset_voting_session(self, caller: Any) -> None:
        '''Discard all votes and reopen the voting session.

        Every voter on the roster is registered anew and all vote counts are
        zeroed. The status change is always announced as coming from
        :attr:`WorkflowStatus.VOTES_TALLIED`, whatever the actual phase was.

        :param caller: Must be the administrator.
        '''
        self._require_admin(caller)
        for identifier in self._roster:
            self._participants[identifier] = Participant(is_registered=True)
        for proposal in self._proposals:
            proposal.vote_count = 0
        logger.info('voting session reset for %d voters', len(self._roster))
        self._change_status(
            WorkflowStatus.VOTING_SESSION_STARTED,
            announced_from=WorkflowStatus.VOTES_TALLIED,
        )

    @synchronized
    def reset_election(self, caller: Any) -> None:
        '''Unregister all voters, drop all proposals and restart.

        :param caller: Must be the administrator.
        '''
        self._require_admin(caller)
        for identifier in self._roster:
            self._participants[identifier] = Participant()
        self._proposals.clear()
        self._roster.clear()
        logger.info('election reset')
        self._change_status(WorkflowStatus.REGISTERING_VOTERS)

    @synchronized
    def list_proposals(self, caller: Any) -> List[Proposal]:
        self._require_voter(caller)
        return [prop.copy() for prop in self._proposals]

    @synchronized
    def tally(self, caller: Any) -> List[Proposal]:
        '''Return the proposals with their current vote counts.

        The administrator's counterpart of :meth:`list_proposals`, usable
        whether or not the administrator is a registered voter.
        '''
        self._require_admin(caller)
        return [prop.copy() for prop in self._proposals]

    @synchronized
    def list_registered_addresses(self, caller: Any) -> List[Any]:
        self._require_voter(caller)
        return list(self._roster)

    @synchronized
    def get_participant(self, caller: Any, identifier: Any) -> Participant:
        '''Return the record of the given identifier.

        Identifiers that were never registered get a default, unregistered
        record.
        '''
        self._require_voter(caller)
        if self.is_null(identifier):
            raise InvalidArgumentError('null identifier has no record')
        record = self._participants.get(identifier)
        return Participant() if record is None else record.copy()

    def to_dict(self) -> Dict[str, Any]:
        '''Serialize the election state; the event log is not included.'''
        with self._lock:
            return {
                'class': scoped_class_name(self),
                'admin': serialize_value(self.admin),
                'null_identifier': serialize_value(self.null_identifier),
                'status': serialize_value(self._status),
                'participants': serialize_value(self._participants),
                'roster': serialize_value(self._roster),
                'proposals': serialize_value(self._proposals),
            }

    @classmethod
    def from_dict(cls,
                  params: Dict[str, Any],
                  events: Optional[EventLog] = None,
                  ) -> Election:
        '''Recreate an election from the output of :meth:`to_dict`.'''
        params = {key: deserialize_value(val) for key, val in params.items()}
        election = cls(
            params['admin'],
            null_identifier=params['null_identifier'],
            events=events,
        )
        election._status = WorkflowStatus.parse(params['status'])
        election._participants = dict(params['participants'])
        election._roster = list(params['roster'])
        election._proposals = list(params['proposals'])
        return election

    def __repr__(self) -> str:
        return (
            f'<Election({self.admin!r},{self._status.label},'
            f'{len(self._roster)} voters,{len(self._proposals)} proposals)>'
        )
