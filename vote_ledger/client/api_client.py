"""HTTP client for the vote ledger API."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from ..vote_api.errors import TransportError
from ..vote_api.models import VoteItem
from . import config

logger = logging.getLogger(__name__)

FALLBACK_SUBMIT_MESSAGE = 'Error submitting vote'


@dataclass
class SubmitResult:
    """Outcome of a vote submission that reached the server."""
    accepted: bool
    message: str
    status_code: int
    refresh: bool = False


class VoteApiClient:
    """Thin wrapper over GET /api/votes and POST /api/vote."""

    def __init__(self, base_url: Optional[str] = None, session=None, timeout: Optional[float] = None):
        self.base_url = (base_url or config.BACKEND_URL).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT

    def list_votes(self) -> List[VoteItem]:
        """
        Fetch every recorded vote, oldest first.

        Raises:
            TransportError: network failure, non-2xx status or unparsable body
        """
        try:
            response = self.session.get(f'{self.base_url}/api/votes', timeout=self.timeout)
            if not 200 <= response.status_code < 300:
                raise TransportError(f"Unable to fetch votes: HTTP {response.status_code}")
            return [VoteItem.model_validate(item) for item in response.json()]
        except TransportError:
            raise
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching votes: {e}")
            raise TransportError()

    def submit_vote(self, email: str, password: str) -> SubmitResult:
        """
        Submit a vote.

        A rejection by the server is returned, not raised: the result carries
        the server's ``message`` or a generic fallback.

        Raises:
            TransportError: network failure or unparsable body
        """
        try:
            response = self.session.post(
                f'{self.base_url}/api/vote',
                json={'email': email, 'password': password},
                timeout=self.timeout
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error submitting vote: {e}")
            raise TransportError()

        if not isinstance(data, dict):
            data = {}

        if 200 <= response.status_code < 300:
            return SubmitResult(
                accepted=True,
                message=data.get('message') or '',
                status_code=response.status_code,
                refresh=data.get('refresh', True)
            )

        return SubmitResult(
            accepted=False,
            message=data.get('message') or FALLBACK_SUBMIT_MESSAGE,
            status_code=response.status_code
        )
