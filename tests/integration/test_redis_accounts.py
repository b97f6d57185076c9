"""Integration tests for the Redis account directory.

Requires: Redis reachable with the REDIS_* settings
"""

import pytest
import redis

from vote_ledger.shared import generate_credential_hash
from vote_ledger.vote_api.accounts import RedisAccountDirectory
from vote_ledger.vote_api.ledger import InMemoryVoteLedger
from vote_ledger.vote_api.errors import AuthenticationError
from vote_ledger.vote_api.service import VoteService

from .conftest import TEST_ACCOUNTS_KEY


@pytest.mark.docker
@pytest.mark.asyncio
class TestRedisAccountDirectory:
    """Tests for authenticate against a Redis SET of credential hashes."""

    async def test_known_account(self, redis_accounts: RedisAccountDirectory, redis_client: redis.Redis):
        redis_client.sadd(TEST_ACCOUNTS_KEY, generate_credential_hash("a@b.com", "p1"))

        assert await redis_accounts.authenticate("A@B.com", "p1")
        assert not await redis_accounts.authenticate("a@b.com", "p2")

    async def test_service_over_redis(self, redis_accounts: RedisAccountDirectory, redis_client: redis.Redis):
        redis_client.sadd(TEST_ACCOUNTS_KEY, generate_credential_hash("a@b.com", "p1"))
        service = VoteService(InMemoryVoteLedger(), redis_accounts)

        with pytest.raises(AuthenticationError):
            await service.submit_vote("a@b.com", "wrong")

        record = await service.submit_vote("a@b.com", "p1")
        assert record.identity == "a@b.com"

    async def test_health(self, redis_accounts: RedisAccountDirectory):
        assert await redis_accounts.check_health()
