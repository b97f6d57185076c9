"""
Shared data models and utilities for the vote ledger.

This module contains:
- VoteRecord: a single accepted vote, keyed by normalized identity
- Identity normalization and credential hash utilities
- Redis key constants
"""

import hashlib
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict


@dataclass(frozen=True)
class VoteRecord:
    """
    A single accepted vote.

    Attributes:
        identity: Normalized voter identity (unique ledger key)
        raw_identity: Identity as originally submitted, used for display
        timestamp: UTC instant assigned by the server at acceptance
    """
    identity: str
    raw_identity: str
    timestamp: datetime

    def to_wire(self) -> Dict[str, str]:
        """Convert to the public wire format: {email, timestamp}."""
        return {
            "email": self.raw_identity,
            "timestamp": self.timestamp.isoformat(),
        }


_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def normalize_identity(raw: str) -> str:
    """
    Canonicalize an email or phone string for duplicate comparisons.

    Leading and trailing whitespace is removed and ASCII letters A-Z are
    lowercased, so "  A@B.com " and "a@b.com" map to the same identity.
    Non-ASCII characters are kept as typed.

    Args:
        raw: Identity as submitted by the voter

    Returns:
        str: Normalized identity (may be empty; callers reject that)
    """
    return raw.strip().translate(_ASCII_LOWER)


def generate_credential_hash(identity: str, password: str) -> str:
    """
    Generate SHA-256 hash from a normalized identity and a password.

    The account directory stores only these hashes, never the passwords.

    Args:
        identity: Normalized identity
        password: Password exactly as submitted

    Returns:
        str: Hexadecimal SHA-256 hash
    """
    combined = f"{identity}|{password}"
    return hashlib.sha256(combined.encode('utf-8')).hexdigest()


def get_current_timestamp() -> datetime:
    """Get current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


# Redis key names
REDIS_KEYS = {
    'valid_accounts': 'valid_accounts',   # SET of credential hashes
}


def get_redis_key(key_type: str, *args) -> str:
    """
    Get formatted Redis key.

    Args:
        key_type: Type of key from REDIS_KEYS
        *args: Arguments to format into key

    Returns:
        str: Formatted Redis key
    """
    key_template = REDIS_KEYS.get(key_type)
    if key_template and '{}' in key_template:
        return key_template.format(*args)
    return key_template
