"""
Binary snapshots of a whole ballot.

The payload is a CBOR array

    [chairperson, proposals, voters, voter_count, {"ballot": version_tuple}]

where ``proposals`` is a list of ``[name, vote_count]`` and ``voters`` a
list of ``[identity, weight, voted, delegate, vote]``. Like contract
metadata, the payload is followed by its own length (including the four
length bytes) as a big-endian uint32, so truncation is detected before
decoding.
"""

from typing import Optional

import cbor2
from packaging.version import InvalidVersion, Version

from ballot.delegation import DelegationResolver
from ballot.engine import BallotEngine
from ballot.exceptions import BallotPanic, DelegationLoop, InvalidIdentity, SnapshotError
from ballot.model import BallotState, Proposal, Voter
from ballot.settings import Settings
from ballot.utils import BYTES32_LENGTH, is_checksum_encoded, to_identity
from ballot.version import version as _version_str

_SUFFIX_LEN = 4


def _version_tuple(v: str) -> tuple:
    ver = Version(v)
    return ver.release


def dumps(engine: BallotEngine) -> bytes:
    state = engine.state
    proposals = [[p.name, p.vote_count] for p in state.proposals]
    voters = [
        [identity, v.weight, v.voted, v.delegate, v.vote]
        for identity, v in state.voters.items()
        if not v.is_default
    ]
    payload = (
        state.chairperson,
        proposals,
        voters,
        state.voter_count,
        {"ballot": list(_version_tuple(_version_str))},
    )
    ret = cbor2.dumps(payload)
    suffix_len = len(ret) + _SUFFIX_LEN
    if suffix_len >= 2 ** (8 * _SUFFIX_LEN):
        raise SnapshotError(f"snapshot too large: {suffix_len} bytes")
    ret += suffix_len.to_bytes(_SUFFIX_LEN, "big")

    return ret


def _strip_suffix(data: bytes) -> bytes:
    if len(data) < _SUFFIX_LEN:
        raise SnapshotError("snapshot is empty")
    suffix_len = int.from_bytes(data[-_SUFFIX_LEN:], "big")
    if suffix_len != len(data):
        raise SnapshotError(
            f"snapshot length mismatch: footer says {suffix_len} bytes, got {len(data)}"
        )
    return data[:-_SUFFIX_LEN]


def _check_version(meta) -> None:
    if not isinstance(meta, dict) or "ballot" not in meta:
        raise SnapshotError("snapshot carries no version")
    try:
        written_by = Version(".".join(str(i) for i in meta["ballot"]))
    except (InvalidVersion, TypeError) as e:
        raise SnapshotError(f"snapshot version is malformed: {meta['ballot']!r}") from e

    current = Version(_version_str)
    if written_by.major > current.major:
        raise SnapshotError(
            f"snapshot written by ballot {written_by}, which is newer than {current}",
            hint="upgrade ballot to read this snapshot",
        )


def _expect_int(value, what: str) -> int:
    # bool is an int subclass, and cbor2 may hand back floats or strings
    if not isinstance(value, int) or isinstance(value, bool):
        raise SnapshotError(f"snapshot {what} is not an integer: {value!r}")
    return value


def _expect_bool(value, what: str) -> bool:
    if not isinstance(value, bool):
        raise SnapshotError(f"snapshot {what} is not a boolean: {value!r}")
    return value


def _decode_state(payload) -> BallotState:
    try:
        chairperson, proposals, voters, voter_count, meta = payload
    except (TypeError, ValueError) as e:
        raise SnapshotError("snapshot payload has the wrong shape") from e

    _check_version(meta)

    try:
        state = BallotState(
            chairperson=chairperson,
            proposals=[],
            voter_count=_expect_int(voter_count, "voter count"),
        )
        for i, (name, count) in enumerate(proposals):
            if not isinstance(name, bytes):
                raise SnapshotError(f"snapshot proposal {i} name is not bytes: {name!r}")
            state.proposals.append(Proposal(name, _expect_int(count, f"proposal {i} count")))

        for identity, weight, voted, delegate, vote in voters:
            if delegate is not None and not isinstance(delegate, str):
                raise SnapshotError(f"snapshot delegate of {identity!r} is malformed")
            voter = Voter(
                _expect_int(weight, "voter weight"),
                _expect_bool(voted, "voted flag"),
                delegate,
                _expect_int(vote, "vote index"),
            )
            state.voters.restore(identity, voter)
    except (TypeError, ValueError, OverflowError) as e:
        raise SnapshotError(f"snapshot record is malformed: {e}") from e

    return state


def _check_identity(identity, what: str) -> None:
    # raw address bytes are accepted by to_identity, but never stored
    ok = isinstance(identity, str)
    if ok:
        try:
            to_identity(identity)
        except InvalidIdentity:
            ok = False
        else:
            ok = is_checksum_encoded(identity)
    if not ok:
        raise SnapshotError(f"snapshot {what} is not a checksummed identity: {identity!r}")


def _validate(state: BallotState) -> None:
    _check_identity(state.chairperson, "chairperson")
    if len(state.proposals) == 0:
        raise SnapshotError("snapshot has no proposals")
    for i, p in enumerate(state.proposals):
        if len(p.name) != BYTES32_LENGTH or p.vote_count < 0:
            raise SnapshotError(f"snapshot proposal {i} is malformed")

    resolver = DelegationResolver(state, Settings())
    for identity, voter in state.voters.items():
        _check_identity(identity, "voter")
        if voter.weight < 0:
            raise SnapshotError(f"negative weight for {identity}")
        if voter.delegate is None:
            if voter.voted and not state.is_valid_proposal(voter.vote):
                raise SnapshotError(f"{identity} voted for a missing proposal {voter.vote}")
            continue

        _check_identity(voter.delegate, "delegate")
        if not voter.voted:
            raise SnapshotError(f"{identity} has a delegate but did not vote")
        try:
            resolver.resolve_delegate(voter.delegate, identity)
        except (DelegationLoop, BallotPanic) as e:
            raise SnapshotError(f"delegation cycle through {identity}") from e


def loads(data: bytes, settings: Optional[Settings] = None) -> BallotEngine:
    body = _strip_suffix(data)
    try:
        payload = cbor2.loads(body)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise SnapshotError(f"snapshot is not valid CBOR: {e}") from e

    state = _decode_state(payload)
    _validate(state)

    return BallotEngine.from_state(state, settings)


def dump(engine: BallotEngine, path) -> None:
    with open(path, "wb") as fh:
        fh.write(dumps(engine))


def load(path, settings: Optional[Settings] = None) -> BallotEngine:
    with open(path, "rb") as fh:
        return loads(fh.read(), settings)
