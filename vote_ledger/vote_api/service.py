"""Vote service: list and submit operations over a ledger."""
import logging
from typing import List

from ..shared import VoteRecord, normalize_identity
from .accounts import AccountDirectory
from .errors import (
    AlreadyVotedError,
    AuthenticationError,
    DuplicateVoteError,
    VoteValidationError,
)
from .ledger import VoteLedger

logger = logging.getLogger(__name__)


class VoteService:
    """
    Records at most one vote per account.

    A failed submission never touches the ledger: validation and
    authentication happen before ``record``, and ``record`` itself either
    inserts or raises without changing anything.
    """

    def __init__(self, ledger: VoteLedger, accounts: AccountDirectory):
        self.ledger = ledger
        self.accounts = accounts

    async def list_votes(self) -> List[VoteRecord]:
        """Return every recorded vote, oldest first."""
        return await self.ledger.list_all()

    async def submit_vote(self, email: str, password: str) -> VoteRecord:
        """
        Submit a vote for the account identified by email.

        Args:
            email: Email or phone as typed by the voter
            password: Account password

        Returns:
            VoteRecord: The newly recorded vote. Callers are expected to
            re-fetch the full list afterwards.

        Raises:
            VoteValidationError: email blank or password empty
            AuthenticationError: credential does not match an account
            AlreadyVotedError: this identity has already voted
        """
        if email is None or not email.strip():
            raise VoteValidationError("Please enter your email or phone")
        if not password:
            raise VoteValidationError("Please enter your password")

        identity = normalize_identity(email)

        if not await self.accounts.authenticate(email, password):
            logger.info(f"Authentication failed for {identity}")
            raise AuthenticationError()

        try:
            record = await self.ledger.record(identity, email)
        except DuplicateVoteError:
            logger.info(f"Duplicate vote rejected for {identity}")
            raise AlreadyVotedError()

        logger.info(f"Vote recorded: identity={identity}")
        return record
