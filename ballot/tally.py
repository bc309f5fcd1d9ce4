from ballot.model import BallotState


class TallyEngine:
    """Read-only queries over the proposal counts."""

    def __init__(self, state: BallotState) -> None:
        self.state = state

    def tallies(self) -> list[int]:
        return [p.vote_count for p in self.state.proposals]

    def winning_proposal(self) -> int:
        # Computes the winning proposal taking all previous votes into
        # account. Ties go to the earliest index; with no votes at all
        # this is 0.
        winning_vote_count = 0
        winning_proposal = 0
        for i, proposal in enumerate(self.state.proposals):
            if proposal.vote_count > winning_vote_count:
                winning_vote_count = proposal.vote_count
                winning_proposal = i
        return winning_proposal

    def winner_name(self) -> bytes:
        return self.state.proposals[self.winning_proposal()].name
