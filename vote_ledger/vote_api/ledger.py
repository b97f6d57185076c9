"""Vote ledger backends.

A ledger maps a normalized identity to exactly one VoteRecord and enumerates
records in insertion order. ``record`` is the only mutating operation and
performs the duplicate check and the insert as one atomic step.
"""
import logging
import threading
from typing import Dict, List, Optional

import asyncpg

from ..shared import VoteRecord, get_current_timestamp
from .errors import DuplicateVoteError

logger = logging.getLogger(__name__)


class VoteLedger:
    """Interface shared by all ledger backends."""

    async def initialize(self):
        """Prepare the backend (connections, schema)."""

    async def close(self):
        """Release backend resources."""

    async def contains(self, identity: str) -> bool:
        raise NotImplementedError

    async def record(self, identity: str, raw_identity: str) -> VoteRecord:
        """
        Insert a new record for identity.

        Raises:
            DuplicateVoteError: identity is already recorded; nothing changes
        """
        raise NotImplementedError

    async def list_all(self) -> List[VoteRecord]:
        """Return all records, oldest first."""
        raise NotImplementedError

    async def count(self) -> int:
        raise NotImplementedError

    async def check_health(self) -> bool:
        return True


class InMemoryVoteLedger(VoteLedger):
    """Process-local ledger guarded by a lock.

    The lock is a ``threading.Lock`` so the ledger stays correct whether it
    is driven from one event loop, several loops or plain threads. Nothing
    inside the critical section awaits.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_identity: Dict[str, VoteRecord] = {}
        self._ordered: List[VoteRecord] = []

    async def contains(self, identity: str) -> bool:
        with self._lock:
            return identity in self._by_identity

    async def record(self, identity: str, raw_identity: str) -> VoteRecord:
        with self._lock:
            if identity in self._by_identity:
                raise DuplicateVoteError(identity)
            vote = VoteRecord(
                identity=identity,
                raw_identity=raw_identity,
                timestamp=get_current_timestamp()
            )
            self._by_identity[identity] = vote
            self._ordered.append(vote)
        logger.debug(f"Recorded vote for {identity}")
        return vote

    async def list_all(self) -> List[VoteRecord]:
        with self._lock:
            return list(self._ordered)

    async def count(self) -> int:
        with self._lock:
            return len(self._ordered)


class PostgresVoteLedger(VoteLedger):
    """Async PostgreSQL ledger.

    Uniqueness is enforced by the primary key on ``identity``; the insert
    uses ``ON CONFLICT DO NOTHING`` so the duplicate check and the write are
    one statement.
    """

    CREATE_TABLE = """
        CREATE TABLE IF NOT EXISTS votes (
            id BIGSERIAL UNIQUE,
            identity TEXT PRIMARY KEY,
            raw_identity TEXT NOT NULL,
            voted_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: Optional[asyncpg.Pool] = None

    async def initialize(self):
        """Initialize connection pool and create the votes table."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=60
            )
            logger.info("PostgreSQL connection pool initialized successfully")

            async with self.pool.acquire() as conn:
                await conn.execute(self.CREATE_TABLE)
                logger.info("PostgreSQL votes table verified")

        except Exception as e:
            logger.error(f"Failed to initialize PostgreSQL ledger: {e}")
            raise

    async def contains(self, identity: str) -> bool:
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval(
                    "SELECT EXISTS(SELECT 1 FROM votes WHERE identity = $1)",
                    identity
                )
        except Exception as e:
            logger.error(f"Error checking identity {identity}: {e}")
            raise

    async def record(self, identity: str, raw_identity: str) -> VoteRecord:
        try:
            async with self.pool.acquire() as conn:
                query = """
                    INSERT INTO votes (identity, raw_identity, voted_at)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (identity) DO NOTHING
                    RETURNING identity, raw_identity, voted_at
                """
                row = await conn.fetchrow(
                    query, identity, raw_identity, get_current_timestamp()
                )
        except Exception as e:
            logger.error(f"Error recording vote for {identity}: {e}")
            raise

        if row is None:
            raise DuplicateVoteError(identity)

        return VoteRecord(
            identity=row["identity"],
            raw_identity=row["raw_identity"],
            timestamp=row["voted_at"]
        )

    async def list_all(self) -> List[VoteRecord]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch("""
                    SELECT identity, raw_identity, voted_at
                    FROM votes
                    ORDER BY id
                """)
                return [
                    VoteRecord(
                        identity=row["identity"],
                        raw_identity=row["raw_identity"],
                        timestamp=row["voted_at"]
                    )
                    for row in rows
                ]
        except Exception as e:
            logger.error(f"Error listing votes: {e}")
            raise

    async def count(self) -> int:
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT COUNT(*) FROM votes")
        except Exception as e:
            logger.error(f"Error counting votes: {e}")
            raise

    async def check_health(self) -> bool:
        """Check database connection health."""
        try:
            if not self.pool:
                return False
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def close(self):
        """Close database connection pool."""
        try:
            if self.pool:
                await self.pool.close()
                logger.info("PostgreSQL connection pool closed successfully")
        except Exception as e:
            logger.error(f"Error closing PostgreSQL connection pool: {e}")
