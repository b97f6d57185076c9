"""Error taxonomy for the vote ledger.

Each error carries a user-facing ``message`` and the HTTP ``status_code`` the
API answers with. The client never inspects the kind, only the status and
the message.
"""


class VoteLedgerError(Exception):
    """Base class for all vote ledger errors."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class VoteValidationError(VoteLedgerError):
    """Identity or credential is empty."""

    status_code = 400
    default_message = "Invalid vote request"


class AuthenticationError(VoteLedgerError):
    """Credential does not match an account."""

    status_code = 401
    default_message = "Invalid email or password"


class DuplicateVoteError(VoteLedgerError):
    """Raised by a ledger when the identity is already recorded."""

    status_code = 409
    default_message = "Identity already recorded"

    def __init__(self, identity: str, message: str = None):
        self.identity = identity
        super().__init__(message)


class AlreadyVotedError(VoteLedgerError):
    """Raised by the vote service when the voter has already voted."""

    status_code = 409
    default_message = "You have already voted"


class TransportError(VoteLedgerError):
    """Network or response parsing failure, raised on the client side only."""

    status_code = 503
    default_message = "Error connecting to server"
