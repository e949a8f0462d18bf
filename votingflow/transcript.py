"""Load and replay JSON transcripts of election calls.

A transcript names the administrator (and optionally the null identifier)
and lists the calls made against the election, each with its caller::

    {
        "admin": "owner",
        "calls": [
            {"caller": "owner", "call": "register_voter", "args": ["alice"]},
            {"caller": "owner", "call": "set_status",
             "args": ["ProposalsRegistrationStarted"]},
            {"caller": "alice", "call": "submit_proposal", "args": ["Park"]}
        ]
    }

Replaying it runs the calls one by one against a fresh election and records
the result or error of each.
"""

from __future__ import annotations

import json
import dataclasses
import typing
from typing import Any, List, Dict, Tuple, Callable, Iterable, TextIO, \
    Optional

from votingflow.election import Election, NULL_ADDRESS
from votingflow.errors import ElectionError


OPERATIONS: List[str] = [
    'set_status',
    'get_status',
    'register_voter',
    'submit_proposal',
    'cast_vote',
    'get_winner',
    'reset_voting_session',
    'reset_election',
    'list_proposals',
    'tally',
    'list_registered_addresses',
    'get_participant',
]


class TranscriptError(ValueError):
    """An input that is not a valid call transcript was detected."""
    pass


@dataclasses.dataclass
class Call:
    """A single call of an election operation."""
    caller: Any
    call: str
    args: List[Any] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class Transcript:
    """A container for data loadable from a transcript file."""
    admin: Any
    calls: List[Call]
    null_identifier: Any = NULL_ADDRESS


@dataclasses.dataclass
class Outcome:
    """The result of a replayed call; exactly one of result and error is
    meaningful."""
    call: Call
    result: Any = None
    error: Optional[ElectionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclasses.dataclass
class Replay:
    election: Election
    outcomes: List[Outcome]

    @property
    def failures(self) -> List[Outcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


def loaders(text_loader: Callable[..., Transcript]
            ) -> Tuple[Callable[..., Transcript], Callable[..., Transcript]]:
    """Create load() and loads() functions from a text parsing function."""
    return_annot = typing.get_type_hints(text_loader).get('return')
    if return_annot is None:
        return_annot = Any

    def load(file: TextIO, **kwargs) -> return_annot:
        return text_loader(file.read(), **kwargs)

    def loads(text: str, **kwargs) -> return_annot:
        return text_loader(text, **kwargs)

    return load, loads


def parse(text: str) -> Transcript:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        raise TranscriptError(f'transcript is not valid JSON: {err}') from err
    if not isinstance(document, dict):
        raise TranscriptError('transcript must be a JSON object')
    if 'admin' not in document:
        raise TranscriptError('transcript does not name the administrator')
    null_identifier = document.get('null_identifier', NULL_ADDRESS)
    admin = document['admin']
    if admin is None or admin == null_identifier:
        raise TranscriptError('transcript administrator must not be null')
    raw_calls = document.get('calls', [])
    if not isinstance(raw_calls, list):
        raise TranscriptError('transcript calls must be a list')
    return Transcript(
        admin=admin,
        calls=[parse_call(raw, i) for i, raw in enumerate(raw_calls)],
        null_identifier=null_identifier,
    )


def parse_call(raw: Dict[str, Any], position: int = 0) -> Call:
    if not isinstance(raw, dict):
        raise TranscriptError(f'call #{position} must be a JSON object')
    for key in ('caller', 'call'):
        if key not in raw:
            raise TranscriptError(f'call #{position} is missing {key!r}')
    if raw['call'] not in OPERATIONS:
        raise TranscriptError(
            f'call #{position}: unknown operation {raw["call"]!r}'
        )
    args = raw.get('args', [])
    if not isinstance(args, list):
        raise TranscriptError(f'call #{position}: args must be a list')
    return Call(caller=raw['caller'], call=raw['call'], args=args)


load, loads = loaders(parse)


def replay(transcript: Transcript,
           stop_on_error: bool = False,
           ) -> Replay:
    """Run the calls of the transcript against a new election.

    :param transcript: The calls to make.
    :param stop_on_error: Stop at the first rejected call instead of
        continuing with the next one. The rejected call is still recorded.
    """
    try:
        election = Election(
            transcript.admin,
            null_identifier=transcript.null_identifier,
        )
    except ElectionError as err:
        raise TranscriptError(f'cannot set up the election: {err}') from err
    return Replay(
        election, list(replay_calls(election, transcript.calls, stop_on_error))
    )


def replay_calls(election: Election,
                 calls: Iterable[Call],
                 stop_on_error: bool = False,
                 ) -> Iterable[Outcome]:
    for call in calls:
        operation = getattr(election, call.call)
        try:
            result = operation(call.caller, *call.args)
        except ElectionError as err:
            yield Outcome(call, error=err)
            if stop_on_error:
                return
        except TypeError as err:
            raise TranscriptError(
                f'wrong arguments for {call.call}: {call.args!r}'
            ) from err
        else:
            yield Outcome(call, result=result)
