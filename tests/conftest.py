"""Pytest fixtures shared by the unit tests.

Fixtures build in-memory backends, the vote service on top of them and an
HTTP test client for the FastAPI application.
"""

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient

from vote_ledger.vote_api.accounts import InMemoryAccountDirectory
from vote_ledger.vote_api.ledger import InMemoryVoteLedger
from vote_ledger.vote_api.main import create_app, limiter
from vote_ledger.vote_api.service import VoteService


@pytest.fixture
def sample_accounts() -> Dict[str, str]:
    """Accounts known to the directory, email -> password."""
    return {
        "a@b.com": "p1",
        "juan@example.com": "hunter2",
        "maria@example.com": "s3cret",
    }


@pytest.fixture
def ledger() -> InMemoryVoteLedger:
    """Empty in-memory ledger."""
    return InMemoryVoteLedger()


@pytest.fixture
def accounts(sample_accounts: Dict[str, str]) -> InMemoryAccountDirectory:
    """Account directory seeded with sample_accounts."""
    return InMemoryAccountDirectory(sample_accounts)


@pytest.fixture
def service(ledger: InMemoryVoteLedger, accounts: InMemoryAccountDirectory) -> VoteService:
    """Vote service over the in-memory backends."""
    return VoteService(ledger, accounts)


@pytest.fixture
def api_client(
    ledger: InMemoryVoteLedger,
    accounts: InMemoryAccountDirectory
) -> Generator[TestClient, None, None]:
    """HTTP client for the vote API.

    The application runs its lifespan inside the context manager. Rate limit
    counters are shared by every app instance, so they are cleared around
    each client.
    """
    limiter.reset()
    app = create_app(ledger=ledger, accounts=accounts)
    with TestClient(app) as client:
        yield client
    limiter.reset()


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "docker: mark test as requiring PostgreSQL/Redis services"
    )
