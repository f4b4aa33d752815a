"""
School data store test suite.

This package contains:
- unit/: Unit tests (no network, SQLite in temp dirs)
- integration/: Service, remote sync and HTTP tests on in-memory backends
"""
