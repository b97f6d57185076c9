"""Account directories answering authenticate(email, password).

The vote service treats the directory as opaque. Both implementations here
look a credential hash up in a preloaded set, in the same way the voter
registry keeps only hashes of valid credentials.
"""
import json
import logging
from typing import Dict, Iterable, Optional

import redis.asyncio as redis

from ..shared import generate_credential_hash, get_redis_key, normalize_identity

logger = logging.getLogger(__name__)


class AccountDirectory:
    """Interface shared by all account directories."""

    async def initialize(self):
        """Prepare the backend."""

    async def close(self):
        """Release backend resources."""

    async def authenticate(self, email: str, password: str) -> bool:
        raise NotImplementedError

    async def check_health(self) -> bool:
        return True


class InMemoryAccountDirectory(AccountDirectory):
    """Directory holding credential hashes in a local set."""

    def __init__(self, accounts: Optional[Dict[str, str]] = None):
        self._hashes = set()
        if accounts:
            self.add_accounts(accounts.items())

    def add_account(self, email: str, password: str) -> None:
        self._hashes.add(generate_credential_hash(normalize_identity(email), password))

    def add_accounts(self, accounts: Iterable) -> None:
        for email, password in accounts:
            self.add_account(email, password)

    @classmethod
    def from_file(cls, path: str) -> "InMemoryAccountDirectory":
        """
        Load accounts from a JSON file.

        Accepted formats: ``{"email": "password", ...}`` or
        ``[{"email": ..., "password": ...}, ...]``.
        """
        with open(path, 'r') as f:
            data = json.load(f)

        if isinstance(data, dict):
            directory = cls(data)
        elif isinstance(data, list):
            directory = cls()
            directory.add_accounts((item["email"], item["password"]) for item in data)
        else:
            raise ValueError(f"Unexpected JSON format in {path}")

        logger.info(f"Loaded {len(directory)} account(s) from {path}")
        return directory

    def __len__(self) -> int:
        return len(self._hashes)

    async def authenticate(self, email: str, password: str) -> bool:
        credential_hash = generate_credential_hash(normalize_identity(email), password)
        return credential_hash in self._hashes


class RedisAccountDirectory(AccountDirectory):
    """Directory backed by a Redis SET of credential hashes."""

    def __init__(self, redis_url: str, key: str = get_redis_key("valid_accounts")):
        self.redis_url = redis_url
        self.key = key
        self.client: Optional[redis.Redis] = None

    async def initialize(self):
        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    async def authenticate(self, email: str, password: str) -> bool:
        credential_hash = generate_credential_hash(normalize_identity(email), password)
        try:
            result = await self.client.sismember(self.key, credential_hash)
            return bool(result)
        except redis.RedisError as e:
            logger.error(f"Redis error checking credentials: {e}")
            raise

    async def check_health(self) -> bool:
        try:
            if not self.client:
                return False
            await self.client.ping()
            return True
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self):
        try:
            if self.client:
                await self.client.aclose()
                logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
