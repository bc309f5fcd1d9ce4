#!/usr/bin/env python3
import argparse
import dataclasses
import json
import os
import sys
import warnings
from pathlib import Path

import ballot
from ballot import snapshot
from ballot.engine import BallotEngine
from ballot.exceptions import BallotException
from ballot.settings import BALLOT_TRACEBACK_LIMIT, Settings
from ballot.warnings import BallotWarning, set_warnings_filter

commands_help = """Command to run, one of:
deploy      - Create a ballot snapshot with the given proposals
give-right  - Give an identity the right to vote (chairperson only)
vote        - Vote for a proposal by index
delegate    - Delegate your vote to another identity
proposals   - List proposals with their vote counts
voter       - Show the voter record of an identity
winner      - Show the winning proposal
"""


def _parse_cli_args():
    sys.exit(_parse_args(sys.argv[1:]))


def _add_caller(parser):
    parser.add_argument(
        "--from", help="Identity sending the transaction", required=True, dest="caller"
    )


def _build_parser():
    parser = argparse.ArgumentParser(
        description="Weighted ballot with delegation",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=ballot.__version__)
    parser.add_argument(
        "-W",
        help="Control warnings: 'error' turns them into errors, 'none' silences them",
        choices=["error", "none"],
        dest="warnings_control",
    )
    parser.add_argument(
        "--traceback-limit",
        help="Set the traceback limit for error messages",
        type=int,
    )
    parser.add_argument(
        "--strict-checksum",
        help="Reject mixed-case addresses with an invalid checksum",
        action="store_true",
    )
    parser.add_argument(
        "--require-registered-delegate",
        help="Reject delegations to identities without voting weight",
        action="store_true",
    )

    subparsers = parser.add_subparsers(dest="command", help=commands_help, required=True)

    deploy = subparsers.add_parser("deploy", help="Create a ballot snapshot")
    deploy.add_argument("snapshot", help="Snapshot file to create")
    _add_caller(deploy)
    deploy.add_argument("proposals", help="Proposal names, at most 32 bytes each", nargs="+")
    deploy.add_argument("--force", help="Overwrite an existing snapshot", action="store_true")

    give_right = subparsers.add_parser("give-right", help="Give the right to vote")
    give_right.add_argument("snapshot")
    _add_caller(give_right)
    give_right.add_argument("voter", help="Identity receiving the right to vote")

    vote = subparsers.add_parser("vote", help="Vote for a proposal")
    vote.add_argument("snapshot")
    _add_caller(vote)
    vote.add_argument("proposal", help="Proposal index", type=int)

    delegate = subparsers.add_parser("delegate", help="Delegate your vote")
    delegate.add_argument("snapshot")
    _add_caller(delegate)
    delegate.add_argument("to", help="Identity to delegate to")

    proposals = subparsers.add_parser("proposals", help="List proposals")
    proposals.add_argument("snapshot")

    voter = subparsers.add_parser("voter", help="Show a voter record")
    voter.add_argument("snapshot")
    voter.add_argument("identity")

    winner = subparsers.add_parser("winner", help="Show the winning proposal")
    winner.add_argument("snapshot")

    return parser


def _save(engine: BallotEngine, path: Path) -> None:
    # write next to the target and swap, so a failed write never
    # leaves a half-written snapshot behind
    tmp_path = path.with_name(path.name + ".tmp")
    snapshot.dump(engine, tmp_path)
    os.replace(tmp_path, path)


def _parse_args(argv) -> int:
    args = _build_parser().parse_args(argv)

    if args.traceback_limit is not None:
        sys.tracebacklimit = args.traceback_limit
    elif BALLOT_TRACEBACK_LIMIT is not None:
        sys.tracebacklimit = BALLOT_TRACEBACK_LIMIT

    settings = Settings()
    if args.strict_checksum:
        settings.strict_checksum = True
    if args.require_registered_delegate:
        settings.require_registered_delegate = True

    with warnings.catch_warnings():
        set_warnings_filter(args.warnings_control)
        try:
            run_command(args, settings)
        except (BallotException, BallotWarning, OSError) as e:
            print(f"{type(e).__name__}: {e}", file=sys.stderr)
            return 1

    return 0


def run_command(args, settings: Settings) -> None:
    path = Path(args.snapshot)

    if args.command == "deploy":
        if path.exists() and not args.force:
            raise FileExistsError(f"{path} already exists, use --force to overwrite it")
        engine = BallotEngine(args.proposals, args.caller, settings)
        _save(engine, path)
        print(f"Ballot deployed to {path}")
        print(f"Chairperson: {engine.chairperson}")
        for i, proposal in enumerate(engine.get_proposals()):
            print(f"Proposal N. {i + 1}: {proposal.text}")
        return

    engine = snapshot.load(path, settings)

    if args.command == "give-right":
        engine.give_right_to_vote(args.caller, args.voter)
        _save(engine, path)
        print(f"Gave right to vote to {engine.get_logs('NewVoter')[-1].args['voter']}")
    elif args.command == "vote":
        engine.vote(args.caller, args.proposal)
        _save(engine, path)
        print(f"Voted for {engine.proposals(args.proposal).text}")
    elif args.command == "delegate":
        final_delegate = engine.delegate(args.caller, args.to)
        _save(engine, path)
        print(f"Delegated to {final_delegate}")
    elif args.command == "proposals":
        for i, proposal in enumerate(engine.get_proposals()):
            print(f"Proposal at {i} is named {proposal.text} ({proposal.vote_count} votes)")
    elif args.command == "voter":
        print(json.dumps(dataclasses.asdict(engine.voters(args.identity)), sort_keys=True))
    elif args.command == "winner":
        index = engine.winning_proposal()
        print(f"{index}: {engine.winner_text()}")
    else:
        raise ValueError(f"unknown command: {args.command}")


if __name__ == "__main__":
    _parse_cli_args()
