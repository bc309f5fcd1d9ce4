#!/usr/bin/env python3

import argparse
import json
import sys
import warnings
from pathlib import Path
from typing import Any, Callable, Hashable, Optional

import ballot
from ballot.engine import BallotEngine
from ballot.exceptions import BallotException, JSONError
from ballot.settings import Settings

# JSON method name -> (engine method, number of arguments)
METHODS = {
    "giveRightToVote": ("give_right_to_vote", 1),
    "vote": ("vote", 1),
    "delegate": ("delegate", 1),
}


def _parse_cli_args():
    return _parse_args(sys.argv[1:])


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Weighted ballot with delegation - JSON interface",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "input_file",
        help="JSON file to run. If none is given, the input is read from stdin.",
        nargs="?",
    )
    parser.add_argument("--version", action="version", version=ballot.__version__)
    parser.add_argument(
        "-o",
        help="Filename to save JSON output to. If the file exists it will be overwritten.",
        default=None,
        dest="output_file",
    )
    parser.add_argument("--pretty-json", help="Output JSON in pretty format.", action="store_true")
    parser.add_argument(
        "--traceback",
        help="Show python traceback on error instead of returning JSON",
        action="store_true",
    )

    args = parser.parse_args(argv)
    if args.input_file:
        with Path(args.input_file).open() as fh:
            input_json = fh.read()
        json_path = Path(args.input_file).resolve().as_posix()
    else:
        input_json = "".join(sys.stdin.read()).strip()
        json_path = "<stdin>"

    exc_handler = exc_handler_raises if args.traceback else exc_handler_to_dict
    output_json = json.dumps(
        run_json(input_json, exc_handler, json_path),
        indent=2 if args.pretty_json else None,
        sort_keys=True,
        default=str,
    )

    if args.output_file is not None:
        output_path = Path(args.output_file).resolve()
        with output_path.open("w") as fh:
            fh.write(output_json)
        print(f"Results saved to {output_path}")
    else:
        print(output_json)


def exc_handler_raises(transaction: Optional[int], exception: Exception, component: str) -> None:
    if transaction is not None:
        print(f"Unhandled exception in transaction {transaction}:")
    exception._exc_handler = True  # type: ignore
    raise exception


def exc_handler_to_dict(transaction: Optional[int], exception: Exception, component: str) -> dict:
    err_dict: dict = {
        "type": type(exception).__name__,
        "component": component,
        "severity": "error",
        "message": str(exception).strip('"'),
    }
    if hasattr(exception, "message"):
        err_dict.update(
            {"message": exception.message, "formattedMessage": str(exception)}  # type: ignore
        )
    # identities involved in the failure, e.g. the rejected caller
    if getattr(exception, "items", None):
        err_dict["items"] = list(exception.items)  # type: ignore
    if transaction is None:
        transaction = getattr(exception, "transaction", None)
    if transaction is not None:
        err_dict["transaction"] = transaction

    return err_dict


def get_settings(input_dict: dict) -> Settings:
    settings = input_dict.get("settings", {})
    if not isinstance(settings, dict):
        raise JSONError(f"invalid settings (must be a dictionary): {json.dumps(settings)}")
    try:
        return Settings.from_dict(settings)
    except ValueError as e:
        raise JSONError(f"Invalid settings - {e}")


def get_proposals(input_dict: dict) -> list:
    proposals = input_dict["proposals"]
    if not isinstance(proposals, list):
        raise JSONError(f"invalid proposals (expected list): {json.dumps(proposals)}")
    for name in proposals:
        if not isinstance(name, str):
            raise JSONError(f"invalid proposal name (expected string): {json.dumps(name)}")
    return proposals


def get_transactions(input_dict: dict) -> list[dict]:
    transactions = input_dict.get("transactions", [])
    if not isinstance(transactions, list):
        raise JSONError(f"invalid transactions (expected list): {json.dumps(transactions)}")

    for i, tx in enumerate(transactions):
        if not isinstance(tx, dict):
            raise JSONError(f"invalid transaction (must be a dictionary): {json.dumps(tx)}", i)
        for key in ("from", "method"):
            if key not in tx:
                raise JSONError(f"transaction missing required field - '{key}'", i)
        if tx["method"] not in METHODS:
            raise JSONError(f"Unknown method '{tx['method']}'", i)
        args = tx.get("args", [])
        if not isinstance(args, list) or len(args) != METHODS[tx["method"]][1]:
            raise JSONError(
                f"'{tx['method']}' expects {METHODS[tx['method']][1]} argument(s), got {args!r}",
                i,
            )

    return transactions


def _apply(engine: BallotEngine, tx: dict) -> Any:
    fn_name, _ = METHODS[tx["method"]]
    return getattr(engine, fn_name)(tx["from"], *tx.get("args", []))


def run_from_input_dict(
    input_dict: dict, exc_handler: Callable = exc_handler_raises
) -> tuple[BallotEngine, list, list]:
    if not isinstance(input_dict, dict):
        raise JSONError("input must be a JSON object")

    settings = get_settings(input_dict)
    proposals = get_proposals(input_dict)
    transactions = get_transactions(input_dict)

    engine = BallotEngine(proposals, input_dict["chairperson"], settings)

    results, errors = [], []
    for i, tx in enumerate(transactions):
        with warnings.catch_warnings(record=True) as caught_warnings:
            warnings.simplefilter("always")
            try:
                ret = _apply(engine, tx)
            except BallotException as exc:
                errors.append(exc_handler(i, exc, "ballot"))
                results.append({"transaction": i, "method": tx["method"], "status": "reverted"})
                continue

        result = {"transaction": i, "method": tx["method"], "status": "success"}
        if ret is not None:
            result["return"] = ret
        results.append(result)

        for msg in caught_warnings:
            warning_dict = {
                "type": msg.category.__name__,
                "component": "ballot",
                "severity": "warning",
                "message": str(msg.message),
                "transaction": i,
            }
            if getattr(msg.message, "items", None):
                warning_dict["items"] = list(msg.message.items)  # type: ignore
            errors.append(warning_dict)

    return engine, results, errors


# convert the final ballot state to the output format
def format_to_output_dict(engine: BallotEngine, results: list, errors: list) -> dict:
    output_dict: dict = {
        "ballot": f"ballot-{ballot.__version__}",
        "chairperson": engine.chairperson,
        "results": results,
        "proposals": [
            {"name": p.text, "voteCount": p.vote_count} for p in engine.get_proposals()
        ],
        "voterCount": engine.voter_count,
        "voters": {
            identity: {
                "weight": v.weight,
                "voted": v.voted,
                "delegate": v.delegate,
                "vote": v.vote,
            }
            for identity, v in engine.state.voters.items()
        },
        "winningProposal": engine.winning_proposal(),
        "winnerName": engine.winner_text(),
    }
    if errors:
        output_dict["errors"] = errors
    return output_dict


# https://stackoverflow.com/a/49518779
def _raise_on_duplicate_keys(ordered_pairs: list[tuple[Hashable, Any]]) -> dict:
    """
    Raise JSONError if a duplicate key exists in provided ordered list
    of pairs, otherwise return a dict.
    """
    dict_out = {}
    for key, val in ordered_pairs:
        if key in dict_out:
            raise JSONError(f"Duplicate key: {key}")
        else:
            dict_out[key] = val
    return dict_out


def _fatal(exc_handler: Callable, exception: Exception, component: str) -> dict:
    err_dict = exc_handler(None, exception, component)
    return {"ballot": f"ballot-{ballot.__version__}", "errors": [err_dict]}


def run_json(
    input_json: dict | str,
    exc_handler: Callable = exc_handler_raises,
    json_path: Optional[str] = None,
) -> dict:
    try:
        if isinstance(input_json, str):
            try:
                input_dict = json.loads(input_json, object_pairs_hook=_raise_on_duplicate_keys)
            except json.decoder.JSONDecodeError as exc:
                new_exc = JSONError(f"{json_path or '<input>'}: {exc}")
                return _fatal(exc_handler, new_exc, "json")
            except JSONError as exc:
                return _fatal(exc_handler, exc, "json")
        else:
            input_dict = input_json

        try:
            engine, results, errors = run_from_input_dict(input_dict, exc_handler)
        except KeyError as exc:
            new_exc = JSONError(f"Input JSON missing required field: {str(exc)}")
            return _fatal(exc_handler, new_exc, "json")
        except JSONError as exc:
            return _fatal(exc_handler, exc, "json")
        except BallotException as exc:
            # the ballot itself could not be created
            return _fatal(exc_handler, exc, "ballot")

        return format_to_output_dict(engine, results, errors)

    except Exception as exc:
        if hasattr(exc, "_exc_handler"):
            # exception was already handled by exc_handler_raises
            raise
        return _fatal(exc_handler, exc, "internal")
