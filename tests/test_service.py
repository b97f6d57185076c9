"""Tests for the vote service.

Covers input validation, authentication, duplicate handling and the
guarantee that failed submissions leave the ledger untouched.
"""

import pytest

from vote_ledger.vote_api.accounts import AccountDirectory
from vote_ledger.vote_api.errors import (
    AlreadyVotedError,
    AuthenticationError,
    VoteValidationError,
)
from vote_ledger.vote_api.ledger import InMemoryVoteLedger
from vote_ledger.vote_api.service import VoteService


class AcceptAllAccounts(AccountDirectory):
    """Directory that authenticates every credential."""

    async def authenticate(self, email: str, password: str) -> bool:
        return True


class RecordingLedger(InMemoryVoteLedger):
    """In-memory ledger counting record() calls."""

    def __init__(self):
        super().__init__()
        self.record_calls = 0

    async def record(self, identity: str, raw_identity: str):
        self.record_calls += 1
        return await super().record(identity, raw_identity)


@pytest.mark.asyncio
class TestSubmitVote:
    """Tests for VoteService.submit_vote."""

    async def test_first_vote_recorded(self, service: VoteService):
        record = await service.submit_vote("a@b.com", "p1")

        assert record.identity == "a@b.com"
        assert record.raw_identity == "a@b.com"

        votes = await service.list_votes()
        assert len(votes) == 1
        assert votes[0].raw_identity == "a@b.com"

    async def test_second_vote_same_account_rejected(self, service: VoteService):
        await service.submit_vote("a@b.com", "p1")

        with pytest.raises(AlreadyVotedError) as exc_info:
            await service.submit_vote("a@b.com", "p1")

        assert exc_info.value.message == "You have already voted"
        assert exc_info.value.status_code == 409
        assert len(await service.list_votes()) == 1

    async def test_duplicate_detection_ignores_case(self):
        service = VoteService(InMemoryVoteLedger(), AcceptAllAccounts())

        await service.submit_vote("A@B.com", "p1")
        with pytest.raises(AlreadyVotedError):
            await service.submit_vote("a@b.com", "p2")

        votes = await service.list_votes()
        assert len(votes) == 1
        assert votes[0].raw_identity == "A@B.com"

    @pytest.mark.parametrize("email,password", [
        ("", "x"),
        ("   ", "x"),
        ("a@b.com", ""),
    ])
    async def test_empty_fields_rejected(self, email, password, accounts):
        ledger = RecordingLedger()
        service = VoteService(ledger, accounts)

        with pytest.raises(VoteValidationError):
            await service.submit_vote(email, password)

        assert ledger.record_calls == 0
        assert await ledger.count() == 0

    async def test_validation_messages(self, service: VoteService):
        with pytest.raises(VoteValidationError) as exc_info:
            await service.submit_vote(" ", "x")
        assert exc_info.value.message == "Please enter your email or phone"

        with pytest.raises(VoteValidationError) as exc_info:
            await service.submit_vote("a@b.com", "")
        assert exc_info.value.message == "Please enter your password"

    async def test_wrong_password_then_correct(self, accounts):
        ledger = RecordingLedger()
        service = VoteService(ledger, accounts)

        with pytest.raises(AuthenticationError):
            await service.submit_vote("a@b.com", "wrong")

        assert ledger.record_calls == 0
        assert await ledger.count() == 0

        record = await service.submit_vote("a@b.com", "p1")
        assert record.identity == "a@b.com"
        assert await ledger.count() == 1

    async def test_unknown_account_rejected(self, service: VoteService):
        with pytest.raises(AuthenticationError) as exc_info:
            await service.submit_vote("stranger@example.com", "p1")

        assert exc_info.value.status_code == 401
        assert await service.list_votes() == []

    async def test_raw_identity_kept_for_display(self, service: VoteService):
        record = await service.submit_vote("Juan@Example.com", "hunter2")

        assert record.identity == "juan@example.com"
        assert record.raw_identity == "Juan@Example.com"

    async def test_votes_listed_in_submission_order(self, service: VoteService):
        await service.submit_vote("maria@example.com", "s3cret")
        await service.submit_vote("a@b.com", "p1")
        await service.submit_vote("juan@example.com", "hunter2")

        votes = await service.list_votes()
        assert [v.identity for v in votes] == [
            "maria@example.com",
            "a@b.com",
            "juan@example.com",
        ]


@pytest.mark.asyncio
async def test_list_votes_empty(service: VoteService):
    assert await service.list_votes() == []
