"""Integration tests for the vote ledger backends.

These tests run the PostgreSQL ledger and the Redis account directory
against live services and are skipped when the services are unreachable.
"""
