from ballot.exceptions import AlreadyRegistered, AlreadyVoted, Unauthorized
from ballot.model import BallotState


class RightsManager:
    """Chairperson-gated admission of voters."""

    def __init__(self, state: BallotState) -> None:
        self.state = state

    def check_give_right_to_vote(self, caller: str, target: str) -> None:
        if caller != self.state.chairperson:
            raise Unauthorized(None, caller)

        voter = self.state.voters.get(target)
        if voter.voted:
            raise AlreadyVoted("The voter already voted.", target)
        if voter.weight != 0:
            raise AlreadyRegistered(None, target)

    def give_right_to_vote(self, caller: str, target: str) -> None:
        # Give `target` the right to vote on this ballot.
        # May only be called by the chairperson.
        self.check_give_right_to_vote(caller, target)
        self.state.voters.slot(target).weight = 1
        self.state.voter_count += 1
