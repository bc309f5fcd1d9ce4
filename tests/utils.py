import contextlib
import os

from ballot.engine import BallotEngine
from ballot.utils import ZERO_ADDRESS, checksum_encode, keccak256  # noqa: F401

PROPOSALS = ["Proposal 1", "Proposal 2", "Proposal 3"]


def make_account(i: int) -> str:
    # deterministic, well-spread test identities
    return checksum_encode("0x" + keccak256(i.to_bytes(32, "big"))[-20:].hex())


@contextlib.contextmanager
def working_directory(directory):
    tmp = os.getcwd()
    try:
        os.chdir(directory)
        yield
    finally:
        os.chdir(tmp)


def live_weight(engine: BallotEngine) -> int:
    # weight still held by identities that have not voted yet
    return sum(v.weight for _, v in engine.state.voters.items() if not v.voted)


def check_invariants(engine: BallotEngine) -> None:
    """
    Sanity checks that must hold after every operation, successful or not.
    """
    state = engine.state
    granted = state.voter_count + 1  # the chairperson starts with weight 1

    # weight is never lost or duplicated
    assert engine.total_weight_cast() + live_weight(engine) == granted
    assert engine.total_weight_cast() <= granted

    for identity, voter in state.voters.items():
        assert voter.weight >= 0
        if voter.delegate is not None:
            assert voter.voted
            # delegation links form a forest
            seen = {identity}
            current = voter.delegate
            while current is not None:
                assert current not in seen, f"cycle through {identity}"
                seen.add(current)
                current = state.voters.get(current).delegate
