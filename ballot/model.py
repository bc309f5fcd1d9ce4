"""
Ballot state: proposals and the voter registry.
"""

import dataclasses
from dataclasses import dataclass
from typing import Iterator, Optional

from ballot.utils import parse_bytes32


@dataclass
class Proposal:
    # short name (up to 32 bytes)
    name: bytes
    # number of accumulated votes
    vote_count: int = 0

    @property
    def text(self) -> str:
        return parse_bytes32(self.name)

    def copy(self) -> "Proposal":
        return dataclasses.replace(self)


@dataclass
class Voter:
    # weight is accumulated by delegation
    weight: int = 0
    # if true, that person already voted (which includes voting by delegating)
    voted: bool = False
    # person delegated to
    delegate: Optional[str] = None
    # index of the voted proposal, which is not meaningful unless `voted` is True
    vote: int = 0

    @property
    def is_default(self) -> bool:
        return self == Voter()

    def copy(self) -> "Voter":
        return dataclasses.replace(self)


class VoterRegistry:
    """
    Identity-keyed voter records.

    Every identity implicitly exists with the default record (zero weight,
    not voted, no delegate). Reads never insert; a record is only stored
    once it is fetched for writing with ``slot()``. Records are never
    removed.
    """

    def __init__(self) -> None:
        self._voters: dict[str, Voter] = {}

    def __len__(self) -> int:
        return len(self._voters)

    def __contains__(self, identity: str) -> bool:
        return identity in self._voters

    def __iter__(self) -> Iterator[str]:
        return iter(self._voters)

    def items(self):
        return self._voters.items()

    def get(self, identity: str) -> Voter:
        ret = self._voters.get(identity)
        if ret is None:
            return Voter()
        return ret

    def slot(self, identity: str) -> Voter:
        # the stored record, inserting the default if needed
        ret = self._voters.get(identity)
        if ret is None:
            ret = self._voters[identity] = Voter()
        return ret

    def restore(self, identity: str, voter: Voter) -> None:
        # only for rebuilding a registry from a snapshot
        if identity in self._voters:
            raise ValueError(f"duplicate voter record: {identity}")
        self._voters[identity] = voter


@dataclass
class BallotState:
    """
    The single aggregate owned by one ballot.
    """

    chairperson: str
    proposals: list[Proposal]
    voters: VoterRegistry = dataclasses.field(default_factory=VoterRegistry)
    voter_count: int = 0

    def is_valid_proposal(self, index) -> bool:
        # bool is an int subclass, but never a proposal index
        if not isinstance(index, int) or isinstance(index, bool):
            return False
        return 0 <= index < len(self.proposals)
