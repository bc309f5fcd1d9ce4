from ballot.exceptions import AlreadyVoted, InvalidProposal, NoRightToVote
from ballot.model import BallotState


class VoteRecorder:
    """Direct votes, the base case every delegation chain resolves to."""

    def __init__(self, state: BallotState) -> None:
        self.state = state

    def check_vote(self, caller: str, proposal: int) -> None:
        sender = self.state.voters.get(caller)
        if sender.weight == 0:
            raise NoRightToVote(None, caller)
        # can't vote twice
        if sender.voted:
            raise AlreadyVoted(None, caller)
        # can only vote on legitimate proposals
        if not self.state.is_valid_proposal(proposal):
            raise InvalidProposal(
                f"Invalid proposal index: {proposal!r}",
                hint=f"valid indices are 0 to {len(self.state.proposals) - 1}",
            )

    def vote(self, caller: str, proposal: int) -> int:
        """
        Give your vote (including votes delegated to you) to proposal
        ``proposals[proposal]``. Returns the weight added.
        """
        self.check_vote(caller, proposal)

        sender = self.state.voters.slot(caller)
        sender.voted = True
        sender.vote = proposal

        self.state.proposals[proposal].vote_count += sender.weight
        return sender.weight
