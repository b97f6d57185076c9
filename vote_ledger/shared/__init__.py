"""
Shared utilities and models for the vote ledger.

This package contains common code used by the API and the client:
- Data models (VoteRecord)
- Identity normalization
- Credential hash generation
- Redis key constants
"""

from .models import (
    VoteRecord,
    normalize_identity,
    generate_credential_hash,
    get_current_timestamp,
    get_redis_key,
    REDIS_KEYS,
)

__all__ = [
    'VoteRecord',
    'normalize_identity',
    'generate_credential_hash',
    'get_current_timestamp',
    'get_redis_key',
    'REDIS_KEYS',
]
