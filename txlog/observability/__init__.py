"""Logging backend wiring and the transaction log record builder.

The core never binds structlog contextvars: each transaction is emitted as a
single call carrying its own immutable property bag.
"""
