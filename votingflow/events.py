'''Notifications emitted by an election and the log that collects them.

The election only ever appends to an :class:`EventLog`; the notifications
are meant for outside observers, who can read the log or subscribe to it.
'''

from __future__ import annotations

from typing import Any, List, Callable, Iterator

from votingflow.persist import simple_serialization
from votingflow.status import WorkflowStatus


class Event:
    '''Base class for election notifications.

    Subclasses list their attribute names in ``serialize_params``, which
    also drives comparison and representation.
    '''
    serialize_params: List[str] = []

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and all(
            getattr(self, attr) == getattr(other, attr)
            for attr in self.serialize_params
        )

    def __repr__(self) -> str:
        return '<{}({})>'.format(
            self.__class__.__name__,
            ','.join(repr(getattr(self, attr))
                     for attr in self.serialize_params)
        )


@simple_serialization
class VoterRegistered(Event):
    serialize_params = ['address']

    def __init__(self, address: Any):
        self.address = address


@simple_serialization
class WorkflowStatusChange(Event):
    serialize_params = ['previous_status', 'new_status']

    def __init__(self,
                 previous_status: WorkflowStatus,
                 new_status: WorkflowStatus,
                 ):
        self.previous_status = previous_status
        self.new_status = new_status


@simple_serialization
class ProposalRegistered(Event):
    serialize_params = ['proposal_id']

    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id


@simple_serialization
class Voted(Event):
    serialize_params = ['voter', 'proposal_id']

    def __init__(self, voter: Any, proposal_id: int):
        self.voter = voter
        self.proposal_id = proposal_id


class EventLog:
    '''An append-only sequence of notifications.

    Subscribers are called synchronously with every appended event, in the
    order of subscription.
    '''
    def __init__(self):
        self._events = []
        self._subscribers = []

    def append(self, event: Event) -> None:
        self._events.append(event)
        for callback in self._subscribers:
            callback(event)

    def subscribe(self, callback: Callable[[Event], Any]) -> None:
        self._subscribers.append(callback)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index):
        return self._events[index]
