"""Votingflow - a whitelisted single-election voting workflow.

An administrator whitelists voters, the voters submit proposals and then
vote for one of them, and the proposal with the strictly highest number of
votes wins. The package is structured as follows:

-   The ``election`` module contains the :class:`Election` itself, which
    gates every operation by the caller's role and the current phase.
-   The ``status`` module defines the phases (:class:`WorkflowStatus`).
-   The ``tally`` module resolves the winner and detects ties.
-   The ``events`` module defines the notifications appended to the
    election's :class:`EventLog`.
-   The ``errors`` module holds the errors raised by rejected operations.
-   The ``persist`` module serializes elections and their records to
    JSON-ready snapshots.
-   The ``transcript`` module replays JSON transcripts of calls; the same is
    available from the command line as ``python -m votingflow``.
"""

from votingflow.election import Election, NULL_ADDRESS
from votingflow.errors import ElectionError, UnauthorizedError, \
    WrongPhaseError, InvalidArgumentError, ConflictError, NoProposalsError, \
    TieDetectedError
from votingflow.events import EventLog
from votingflow.persist import to_dict, from_dict
from votingflow.records import Participant, Proposal
from votingflow.status import WorkflowStatus
