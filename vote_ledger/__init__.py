"""One-vote-per-account ledger service and client."""

__version__ = '1.0.0'
