"""Pytest fixtures for integration tests.

Connection parameters come from the same environment variables the service
reads. Tests are skipped when PostgreSQL or Redis is not available.
"""

import asyncio
import os
from typing import AsyncGenerator, Generator

import asyncpg
import pytest
import redis

from vote_ledger.vote_api.accounts import RedisAccountDirectory
from vote_ledger.vote_api.ledger import PostgresVoteLedger

TEST_ACCOUNTS_KEY = "test_valid_accounts"


@pytest.fixture(scope="session")
def postgres_dsn() -> str:
    return (
        f"postgresql://{os.getenv('POSTGRES_USER', 'vote_user')}"
        f":{os.getenv('POSTGRES_PASSWORD', 'vote_pass')}"
        f"@{os.getenv('POSTGRES_HOST', 'localhost')}"
        f":{os.getenv('POSTGRES_PORT', '5432')}"
        f"/{os.getenv('POSTGRES_DB', 'vote_db')}"
    )


@pytest.fixture(scope="session")
def redis_url() -> str:
    return (
        f"redis://{os.getenv('REDIS_HOST', 'localhost')}"
        f":{os.getenv('REDIS_PORT', '6379')}"
        f"/{os.getenv('REDIS_DB', '0')}"
    )


@pytest.fixture
async def postgres_ledger(postgres_dsn: str) -> AsyncGenerator[PostgresVoteLedger, None]:
    """PostgreSQL ledger over an emptied votes table."""
    ledger = PostgresVoteLedger(postgres_dsn, min_size=1, max_size=10)
    try:
        await ledger.initialize()
    except (OSError, asyncpg.PostgresError, asyncio.TimeoutError) as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    async with ledger.pool.acquire() as conn:
        await conn.execute("TRUNCATE TABLE votes RESTART IDENTITY")

    yield ledger

    await ledger.close()


@pytest.fixture
def redis_client(redis_url: str) -> Generator[redis.Redis, None, None]:
    """Redis client for test setup; the test key is removed afterwards."""
    client = redis.Redis.from_url(redis_url, decode_responses=True)

    try:
        client.ping()
    except redis.ConnectionError:
        pytest.skip("Redis not available")

    client.delete(TEST_ACCOUNTS_KEY)

    yield client

    client.delete(TEST_ACCOUNTS_KEY)
    client.close()


@pytest.fixture
async def redis_accounts(redis_url: str, redis_client: redis.Redis) -> AsyncGenerator[RedisAccountDirectory, None]:
    """Redis account directory bound to the test key."""
    directory = RedisAccountDirectory(redis_url, key=TEST_ACCOUNTS_KEY)
    await directory.initialize()

    yield directory

    await directory.close()
