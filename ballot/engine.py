"""
The ballot façade.

``BallotEngine`` owns one ``BallotState`` and is the only way to change it.
Every mutating operation checks all of its preconditions before writing,
and runs under a per-ballot lock, so a rejected call leaves no trace and a
successful one is never observed half-applied.
"""

import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ballot.delegation import DelegationResolver
from ballot.exceptions import InvalidProposal, InvalidProposalName
from ballot.model import BallotState, Proposal, Voter
from ballot.recorder import VoteRecorder
from ballot.rights import RightsManager
from ballot.settings import Settings
from ballot.tally import TallyEngine
from ballot.utils import format_bytes32, parse_bytes32, to_identity


# a very simple representation of an emitted event
@dataclass
class LogEntry:
    index: int
    event: str
    args: dict = field(default_factory=dict)


class BallotEngine:
    def __init__(
        self, proposal_names: Iterable, chairperson, settings: Optional[Settings] = None
    ) -> None:
        settings = settings or Settings()

        chairperson = to_identity(chairperson, settings.strict_checksum)
        proposals = [Proposal(format_bytes32(name)) for name in proposal_names]
        if len(proposals) == 0:
            raise InvalidProposalName("a ballot needs at least one proposal")

        state = BallotState(chairperson=chairperson, proposals=proposals)
        state.voters.slot(chairperson).weight = 1

        self._setup(state, settings)

    @classmethod
    def from_state(cls, state: BallotState, settings: Optional[Settings] = None):
        """
        Wrap an existing state, e.g. one decoded from a snapshot.

        The state is taken over as-is; validating it is the caller's job.
        """
        ret = cls.__new__(cls)
        ret._setup(state, settings or Settings())
        return ret

    def _setup(self, state: BallotState, settings: Settings) -> None:
        self._state = state
        self.settings = settings
        self.logs: list[LogEntry] = []
        self._lock = threading.RLock()

        self._rights = RightsManager(state)
        self._delegation = DelegationResolver(state, settings)
        self._recorder = VoteRecorder(state)
        self._tally = TallyEngine(state)

    def __repr__(self):
        return (
            f"<BallotEngine chairperson={self.chairperson} "
            f"proposals={len(self._state.proposals)} voters={self.voter_count}>"
        )

    def _identity(self, addr) -> str:
        return to_identity(addr, self.settings.strict_checksum)

    def _log(self, event: str, **args) -> None:
        self.logs.append(LogEntry(len(self.logs), event, args))

    @property
    def state(self) -> BallotState:
        return self._state

    @property
    def chairperson(self) -> str:
        return self._state.chairperson

    @property
    def voter_count(self) -> int:
        return self._state.voter_count

    # state transitions

    def give_right_to_vote(self, caller, target) -> None:
        caller, target = self._identity(caller), self._identity(target)
        with self._lock:
            self._rights.give_right_to_vote(caller, target)
            self._log("NewVoter", voter=target)

    def vote(self, caller, proposal: int) -> None:
        caller = self._identity(caller)
        with self._lock:
            weight = self._recorder.vote(caller, proposal)
            self._log("Voted", voter=caller, proposal=proposal, weight=weight)

    def delegate(self, caller, to) -> str:
        """
        Delegate the caller's vote to ``to``.

        Returns the terminal delegate the weight was forwarded to, which
        differs from ``to`` when ``to`` delegated already.
        """
        caller, to = self._identity(caller), self._identity(to)
        with self._lock:
            final_delegate = self._delegation.delegate(caller, to)
            self._log(
                "Delegated",
                voter=caller,
                to=to,
                delegate=final_delegate,
                weight=self._state.voters.get(caller).weight,
            )
        return final_delegate

    # queries

    def resolve_delegate(self, start, origin) -> str:
        return self._delegation.resolve_delegate(self._identity(start), self._identity(origin))

    def winning_proposal(self) -> int:
        return self._tally.winning_proposal()

    def winner_name(self) -> bytes:
        # the stored 32-byte name, NUL padding included
        return self._tally.winner_name()

    def winner_text(self) -> str:
        """
        The winning proposal's name as text, e.g. ``"Proposal 1"``.
        """
        return parse_bytes32(self._tally.winner_name())

    def tallies(self) -> list[int]:
        return self._tally.tallies()

    def total_weight_cast(self) -> int:
        return sum(self._tally.tallies())

    def get_proposals(self) -> list[Proposal]:
        return [p.copy() for p in self._state.proposals]

    def proposals(self, index: int) -> Proposal:
        if not self._state.is_valid_proposal(index):
            raise InvalidProposal(f"Invalid proposal index: {index!r}")
        return self._state.proposals[index].copy()

    def voters(self, identity) -> Voter:
        return self._state.voters.get(self._identity(identity)).copy()

    def delegated(self, identity) -> bool:
        return self.voters(identity).delegate is not None

    def directly_voted(self, identity) -> bool:
        voter = self.voters(identity)
        return voter.voted and voter.delegate is None

    def get_logs(self, event: Optional[str] = None) -> list[LogEntry]:
        if event is None:
            return list(self.logs)
        return [log for log in self.logs if log.event == event]
