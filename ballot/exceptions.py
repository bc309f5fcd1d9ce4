
class _BaseBallotException(Exception):
    """
    Base ballot exception class.

    This exception is not raised directly. Other exceptions inherit it in
    order to share message and hint formatting.
    """

    # message used when the exception is raised without one
    default_message = "Error Message not found."

    def __init__(self, message=None, *items, hint=None):
        """
        Exception initializer.

        Arguments
        ---------
        message : str, optional
            Error message to display with the exception. Falls back to the
            class-level ``default_message``.
        *items : str, optional
            Identities or values involved in the failure, kept for error
            reports. ``None`` entries are dropped.
        hint : str | Callable[[], str], optional
            Extra advice appended to the message when rendered.
        """
        if message is None:
            message = self.default_message
        self._message = message
        self._hint = hint
        self.items = [k for k in items if k is not None]
        super().__init__(message)

    @property
    def hint(self):
        # hints may be expensive to compute, so they are only evaluated
        # when the formatted message is actually requested.
        if callable(self._hint):
            return self._hint()
        return self._hint

    @property
    def message(self):
        msg = self._message
        hint = self.hint
        if hint:
            msg += f"\n\n  (hint: {hint})"
        return msg

    def __str__(self):
        return self.message


class BallotException(_BaseBallotException):
    pass


class Reverted(BallotException):
    """
    A state transition was rejected.

    Raised before any state is written, so the ballot is left exactly as
    it was before the call.
    """


class Unauthorized(Reverted):
    """Only the chairperson may grant voting rights."""

    default_message = "Only chairperson can give right to vote."


class AlreadyVoted(Reverted):
    """The identity already voted, either directly or by delegating."""

    default_message = "Already voted."


class AlreadyRegistered(Reverted):
    """The identity already holds voting weight."""

    # kept empty: the rejection carries no qualifying message
    default_message = ""


class NoRightToVote(Reverted):
    """The caller was never granted voting weight."""

    default_message = "Has no right to vote"


class InvalidProposal(Reverted):
    """Proposal index outside of the fixed proposal list."""

    default_message = "Invalid proposal index."


class SelfDelegation(Reverted):
    """Delegation to oneself."""

    default_message = "Self-delegation is disallowed."


class DelegationLoop(Reverted):
    """The delegation chain leads back to the delegating identity."""

    default_message = "Found loop in delegation."


class DelegateHasNoRight(Reverted):
    """The terminal delegate holds no voting weight."""

    default_message = "Delegate has no right to vote."


class InvalidIdentity(BallotException):
    """Identity is not a well-formed address."""


class InvalidProposalName(BallotException):
    """Proposal name cannot be stored as a 32-byte identifier."""


class SnapshotError(BallotException):
    """Ballot snapshot is corrupt, truncated or from an incompatible version."""


class JSONError(Exception):

    """Invalid JSON interface input."""

    def __init__(self, msg, transaction=None):
        super().__init__(msg)
        self.transaction = transaction


class BallotInternalException(_BaseBallotException):
    """
    Base ballot internal exception class.

    This exception is not raised directly, it is subclassed by other internal
    exceptions.

    Internal exceptions mean that the ballot found one of its own invariants
    broken, and that filing a bug report would be appropriate.
    """

    def __str__(self):
        return (
            f"{super().__str__()}\n\n"
            "This is an unhandled internal ballot error. "
            "Please create an issue to notify the developers!"
        )


class BallotPanic(BallotInternalException):
    """General unexpected error while applying a state transition."""
