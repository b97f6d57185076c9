"""Python client for the vote ledger API."""

from .api_client import SubmitResult, VoteApiClient
from .controller import FormState, SignInController

__all__ = [
    'SubmitResult',
    'VoteApiClient',
    'FormState',
    'SignInController',
]
