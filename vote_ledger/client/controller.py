"""
Two-step sign-in controller.

The form first collects an identity (email or phone), then a credential.
State lives in an explicit FormState value; every transition is a method
that checks its guard and returns whether it happened.
"""
import logging
import threading
from enum import Enum
from typing import List, Optional

from ..vote_api.errors import TransportError
from ..vote_api.models import VoteItem
from .api_client import VoteApiClient

logger = logging.getLogger(__name__)

MSG_ENTER_IDENTITY = 'Please enter your email or phone'
MSG_ENTER_PASSWORD = 'Please enter your password'
MSG_VOTE_ACCEPTED = 'Thank you for voting. Vote again'
MSG_CONNECTION_ERROR = 'Error connecting to server'
MSG_FETCH_FAILED = 'Unable to fetch votes from server.'


class FormState(str, Enum):
    """States of the sign-in form."""
    COLLECTING_IDENTITY = "collecting_identity"
    COLLECTING_CREDENTIAL = "collecting_credential"


class SignInController:
    """Drive the sign-in form and the vote list against a VoteApiClient."""

    def __init__(self, client: Optional[VoteApiClient] = None):
        self.client = client or VoteApiClient()
        self.state = FormState.COLLECTING_IDENTITY
        self.email = ''
        self.password = ''
        self.message: Optional[str] = None
        self.votes: List[VoteItem] = []
        self._in_flight = threading.Lock()

    @property
    def submitting(self) -> bool:
        """True while a submission is on the wire."""
        return self._in_flight.locked()

    def set_email(self, value: str) -> bool:
        if self.state is not FormState.COLLECTING_IDENTITY:
            return False
        self.email = value
        return True

    def set_password(self, value: str) -> bool:
        # credential input is disabled while submitting
        if self.state is not FormState.COLLECTING_CREDENTIAL or self.submitting:
            return False
        self.password = value
        return True

    def next(self) -> bool:
        """Move from identity to credential entry if an identity was typed."""
        if self.state is not FormState.COLLECTING_IDENTITY:
            return False
        if not self.email.strip():
            self.message = MSG_ENTER_IDENTITY
            return False
        self.message = None
        self.state = FormState.COLLECTING_CREDENTIAL
        return True

    def back(self) -> bool:
        """Return to identity entry, keeping the email."""
        if self.state is not FormState.COLLECTING_CREDENTIAL or self.submitting:
            return False
        self.state = FormState.COLLECTING_IDENTITY
        return True

    def sign_in(self) -> bool:
        """
        Submit the vote.

        On success the form is reset and the vote list re-fetched. On any
        failure the form stays on credential entry with its fields intact
        and ``message`` explains why.

        Returns:
            bool: True if the vote was accepted
        """
        if self.state is not FormState.COLLECTING_CREDENTIAL:
            return False
        if not self.password.strip():
            self.message = MSG_ENTER_PASSWORD
            return False
        if not self._in_flight.acquire(blocking=False):
            return False

        try:
            result = self.client.submit_vote(self.email, self.password)
        except TransportError as e:
            logger.warning(f"Vote submission failed: {e.message}")
            self.message = MSG_CONNECTION_ERROR
            return False
        finally:
            self._in_flight.release()

        if not result.accepted:
            self.message = result.message
            return False

        self.message = MSG_VOTE_ACCEPTED
        self.email = ''
        self.password = ''
        self.state = FormState.COLLECTING_IDENTITY
        if result.refresh:
            self.refresh()
        return True

    def refresh(self) -> bool:
        """
        Re-fetch the vote list.

        A failed fetch keeps the list that was already displayed.
        """
        try:
            self.votes = self.client.list_votes()
            return True
        except TransportError as e:
            logger.error(f"Error fetching votes: {e}")
            self.message = MSG_FETCH_FAILED
            return False
