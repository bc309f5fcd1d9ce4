"""
Delegation of voting weight.

Delegation links are stored on the delegating voter as the identity of the
*terminal* delegate at the time of delegating, so the stored relation is
always a forest: a new edge can only close a cycle if the chain starting
at the requested delegate leads back to the delegating voter, and that is
exactly what the chain walk checks before anything is written.
"""

from ballot.exceptions import (
    AlreadyVoted,
    BallotPanic,
    DelegateHasNoRight,
    DelegationLoop,
    SelfDelegation,
)
from ballot.model import BallotState
from ballot.settings import Settings
from ballot.warnings import UnregisteredDelegate, ballot_warn


class DelegationResolver:
    def __init__(self, state: BallotState, settings: Settings) -> None:
        self.state = state
        self.settings = settings

    def resolve_delegate(self, start: str, origin: str) -> str:
        """
        Follow delegate links from ``start`` to the terminal delegate.

        Raises ``DelegationLoop`` if the walk visits ``origin``. Only stored
        voters can carry a link, so a walk longer than the registry means
        the registry already holds a cycle.
        """
        voters = self.state.voters
        max_hops = len(voters)

        current = start
        hops = 0
        while True:
            if current == origin:
                raise DelegationLoop(None, origin, start)

            next_ = voters.get(current).delegate
            if next_ is None:
                return current

            hops += 1
            if hops > max_hops:
                raise BallotPanic(f"delegation chain from {start} does not terminate")
            current = next_

    def check_delegate(self, caller: str, to: str) -> str:
        """
        Validate a delegation without writing anything.

        Returns the terminal delegate the weight would go to.
        """
        if to == caller:
            raise SelfDelegation(None, caller)
        if self.state.voters.get(caller).voted:
            raise AlreadyVoted("You already voted.", caller)

        final_delegate = self.resolve_delegate(to, caller)

        if self.state.voters.get(final_delegate).weight == 0:
            if self.settings.require_registered_delegate:
                raise DelegateHasNoRight(None, final_delegate)
            ballot_warn(
                UnregisteredDelegate(
                    f"{final_delegate} was never granted the right to vote",
                    final_delegate,
                    hint="weight delegated to it only counts if it is later delegated onward",
                )
            )

        return final_delegate

    def delegate(self, caller: str, to: str) -> str:
        final_delegate = self.check_delegate(caller, to)

        voters = self.state.voters
        sender = voters.slot(caller)
        delegate_ = voters.slot(final_delegate)

        sender.voted = True
        sender.delegate = final_delegate

        if delegate_.voted:
            # the delegate already voted, add to the chosen proposal directly
            self.state.proposals[delegate_.vote].vote_count += sender.weight
        else:
            # the delegate did not vote yet, add to their weight
            delegate_.weight += sender.weight

        return final_delegate
