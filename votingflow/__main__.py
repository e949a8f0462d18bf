"""A commandline tool to replay a transcript of election calls.

Runs the calls from a JSON transcript against a fresh election, reports the
rejected ones and shows the resulting proposals and the winner.
"""

import argparse
import io
import json
import logging
import sys
import warnings
from typing import Optional, List

import votingflow.tally
import votingflow.transcript
from votingflow.election import Election
from votingflow.errors import TieDetectedError
from votingflow.records import Proposal
from votingflow.status import WorkflowStatus

argparser = argparse.ArgumentParser(
    description=__doc__,
    formatter_class=argparse.ArgumentDefaultsHelpFormatter,
)
argparser.add_argument(
    '-i', '--input-file',
    type=argparse.FileType('r', encoding='utf8'),
    help='file to load the call transcript from',
)
argparser.add_argument(
    '-I', '--use-stdin',
    action='store_true',
    help='load the call transcript from standard input',
)
argparser.add_argument(
    '-x', '--stop-on-error',
    action='store_true',
    help='stop replaying at the first rejected call',
)
argparser.add_argument(
    '-s', '--snapshot',
    type=argparse.FileType('w', encoding='utf8'),
    help='write a JSON snapshot of the final election state to this file',
)
argparser.add_argument(
    '-v', '--verbose',
    action='store_true',
    help='show all election log messages and other info',
)
argparser.add_argument(
    '-q', '--quiet',
    action='store_true',
    help='do not show any election log messages or other info',
)


def main(input_file: io.TextIOBase,
         use_stdin: bool = False,
         stop_on_error: bool = False,
         snapshot: Optional[io.TextIOBase] = None,
         verbose: bool = False,
         quiet: bool = False,
         ) -> None:
    logging.basicConfig(
        level=(
            logging.DEBUG if verbose
            else (logging.WARNING if quiet else logging.INFO)
        ),
        format='%(levelname)-10s %(message)s'
    )
    if use_stdin:
        input_file = sys.stdin
    transcript = votingflow.transcript.load(input_file)
    if not transcript.calls:
        warnings.warn('empty transcript: no calls to replay, terminating')
        return
    replay = votingflow.transcript.replay(
        transcript, stop_on_error=stop_on_error
    )
    for outcome in replay.failures:
        logging.warning('%r %s%r rejected: %s', outcome.call.caller,
                        outcome.call.call, tuple(outcome.call.args),
                        outcome.error)
    print(f'Replayed {len(replay.outcomes)} of {len(transcript.calls)} calls,'
          f' {len(replay.failures)} rejected')
    show_election(replay.election)
    if snapshot is not None:
        json.dump(replay.election.to_dict(), snapshot, indent=2)


def show_election(election: Election) -> None:
    """Show the final state of the election and its winner, if any."""
    status = election.get_status(election.admin)
    print(f'Election status: {status.label}')
    proposals = election.tally(election.admin)
    show_proposals(proposals)
    if not proposals:
        return
    elif status != WorkflowStatus.VOTES_TALLIED:
        print('Votes not tallied, no winner')
        return
    counts = [prop.vote_count for prop in proposals]
    try:
        winner = votingflow.tally.resolve_winner(counts)
    except TieDetectedError as err:
        print('Tie between: ' + ', '.join(
            proposals[index].description for index in sorted(err.tie)
        ))
    else:
        print(f'Winner: {proposals[winner].description}')


def show_proposals(proposals: List[Proposal]) -> None:
    if not proposals:
        print('No proposals')
        return
    n_just_chars = len(max((prop.description for prop in proposals), key=len))
    for i, prop in enumerate(proposals):
        print(str(i).rjust(3), ' ', prop.description.ljust(n_just_chars),
              ' ', prop.vote_count)


if __name__ == '__main__':
    args = argparser.parse_args()
    if not args.input_file and not args.use_stdin:
        argparser.print_usage()
    else:
        main(**vars(args))
