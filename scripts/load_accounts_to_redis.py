#!/usr/bin/env python3
"""
Load voter accounts into Redis.

This script reads email/password pairs, turns each into a credential hash and
loads the hashes into the Redis SET the API authenticates against. Passwords
never reach Redis. SADD operations are batched through a pipeline.

Accepted input files:
    JSON: {"email": "password", ...} or [{"email": ..., "password": ...}, ...]
    CSV:  email,password (a header row named "email,password" is skipped)

Usage:
    python load_accounts_to_redis.py ACCOUNTS_FILE [--redis-host HOST] [--batch-size SIZE] [--clear]

Environment Variables:
    REDIS_HOST: Redis server host (default: localhost)
    REDIS_PORT: Redis server port (default: 6379)
    REDIS_PASSWORD: Redis password (optional)
    REDIS_ACCOUNTS_KEY: SET holding credential hashes (default: valid_accounts)
"""

import os
import sys
import csv
import json
import argparse
import redis
from pathlib import Path
from typing import Generator, Tuple
from tqdm import tqdm

from vote_ledger.shared import generate_credential_hash, get_redis_key, normalize_identity

DEFAULT_ACCOUNTS_KEY = get_redis_key('valid_accounts')


def read_account_file(path: Path) -> Generator[Tuple[str, str], None, None]:
    """
    Read email/password pairs from a JSON or CSV file.

    Args:
        path: File to read

    Yields:
        tuple: (email, password)
    """
    if path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
        if isinstance(data, dict):
            yield from data.items()
        elif isinstance(data, list):
            for entry in data:
                if isinstance(entry, dict) and 'email' in entry and 'password' in entry:
                    yield entry['email'], entry['password']
                else:
                    print(f"✗ Skipping malformed entry in {path}", file=sys.stderr)
        else:
            raise ValueError(f"Unexpected JSON format in {path}")
    else:
        with open(path, 'r', newline='') as f:
            for row in csv.reader(f):
                if len(row) < 2 or not row[0].strip() or row[0].startswith('#'):
                    continue
                if row[0].strip().lower() == 'email' and row[1].strip().lower() == 'password':
                    continue
                yield row[0], row[1]


def credential_hashes(path: Path) -> Generator[str, None, None]:
    """Yield the credential hash of every account in path."""
    for email, password in read_account_file(path):
        yield generate_credential_hash(normalize_identity(email), password)


class AccountLoader:
    """Load credential hashes into Redis efficiently."""

    def __init__(
        self,
        redis_host: str = 'localhost',
        redis_port: int = 6379,
        redis_password: str = None,
        redis_db: int = 0,
        key: str = DEFAULT_ACCOUNTS_KEY,
        batch_size: int = 10000
    ):
        self.redis_host = redis_host
        self.redis_port = redis_port
        self.redis_password = redis_password
        self.redis_db = redis_db
        self.key = key
        self.batch_size = batch_size
        self.redis_client = None

    def connect(self) -> bool:
        """
        Connect to Redis.

        Returns:
            bool: True if connection successful
        """
        try:
            self.redis_client = redis.Redis(
                host=self.redis_host,
                port=self.redis_port,
                password=self.redis_password,
                db=self.redis_db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            self.redis_client.ping()
            print(f"✓ Connected to Redis at {self.redis_host}:{self.redis_port}")
            return True
        except redis.RedisError as e:
            print(f"✗ Failed to connect to Redis: {e}", file=sys.stderr)
            return False

    def load_accounts(self, path: Path, clear_existing: bool = False) -> dict:
        """
        Load all accounts from path into Redis.

        Args:
            path: Account file
            clear_existing: If True, clear existing hashes before loading

        Returns:
            dict: Statistics about the load operation
        """
        if not self.redis_client:
            raise RuntimeError("Not connected to Redis. Call connect() first.")

        stats = {
            'total_accounts': 0,
            'loaded_accounts': 0,
            'errors': 0
        }

        if clear_existing:
            print("Clearing existing accounts...")
            self.redis_client.delete(self.key)

        batch = []
        pipeline = self.redis_client.pipeline()

        with tqdm(desc="Loading accounts", unit="accounts") as pbar:
            for credential_hash in credential_hashes(path):
                stats['total_accounts'] += 1
                batch.append(credential_hash)

                if len(batch) >= self.batch_size:
                    stats.update(self._flush(pipeline, batch, stats))
                    pbar.update(len(batch))
                    batch = []

            if batch:
                stats.update(self._flush(pipeline, batch, stats))
                pbar.update(len(batch))

        redis_count = self.redis_client.scard(self.key)

        print("\n✓ Load complete!")
        print(f"  Total accounts processed: {stats['total_accounts']:,}")
        print(f"  Accounts in Redis: {redis_count:,}")
        if stats['errors'] > 0:
            print(f"  Errors: {stats['errors']:,}")

        return stats

    def _flush(self, pipeline, batch: list, stats: dict) -> dict:
        try:
            pipeline.sadd(self.key, *batch)
            pipeline.execute()
            return {'loaded_accounts': stats['loaded_accounts'] + len(batch)}
        except redis.RedisError as e:
            print(f"\n✗ Error loading batch: {e}", file=sys.stderr)
            return {'errors': stats['errors'] + len(batch)}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Load voter accounts into Redis as credential hashes'
    )
    parser.add_argument(
        'accounts_file',
        type=Path,
        help='JSON or CSV file of email/password pairs'
    )
    parser.add_argument(
        '--redis-host',
        default=os.getenv('REDIS_HOST', 'localhost'),
        help='Redis server host (default: localhost)'
    )
    parser.add_argument(
        '--redis-port',
        type=int,
        default=int(os.getenv('REDIS_PORT', 6379)),
        help='Redis server port (default: 6379)'
    )
    parser.add_argument(
        '--redis-password',
        default=os.getenv('REDIS_PASSWORD'),
        help='Redis password (optional)'
    )
    parser.add_argument(
        '--redis-db',
        type=int,
        default=int(os.getenv('REDIS_DB', 0)),
        help='Redis database number (default: 0)'
    )
    parser.add_argument(
        '--key',
        default=os.getenv('REDIS_ACCOUNTS_KEY', DEFAULT_ACCOUNTS_KEY),
        help=f'Redis SET holding credential hashes (default: {DEFAULT_ACCOUNTS_KEY})'
    )
    parser.add_argument(
        '--batch-size',
        type=int,
        default=10000,
        help='Batch size for SADD operations (default: 10000)'
    )
    parser.add_argument(
        '--clear',
        action='store_true',
        help='Clear existing accounts before loading'
    )

    args = parser.parse_args()

    if not args.accounts_file.exists():
        print(f"✗ Accounts file does not exist: {args.accounts_file}", file=sys.stderr)
        sys.exit(1)

    loader = AccountLoader(
        redis_host=args.redis_host,
        redis_port=args.redis_port,
        redis_password=args.redis_password,
        redis_db=args.redis_db,
        key=args.key,
        batch_size=args.batch_size
    )

    if not loader.connect():
        sys.exit(1)

    try:
        stats = loader.load_accounts(args.accounts_file, clear_existing=args.clear)

        if stats['errors'] > 0:
            sys.exit(1)

    except KeyboardInterrupt:
        print("\n\n✗ Load interrupted by user", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n✗ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
