"""
Local persistence for the school data store.

This module provides:
- DurableStore protocol with SQLite and in-memory backends
- LocalPersistence: snapshot cache written on every change
- CredentialStore: remote credentials under their own key

Invariants:
    - Writes are synchronous to the caller
    - Capacity failures never roll back the in-memory snapshot
    - Everything read back goes through the sanitizer
"""

from .base import DEFAULT_QUOTA_BYTES, DurableStore
from .credentials import DEFAULT_CREDENTIALS_KEY, CredentialStore
from .local import DEFAULT_SNAPSHOT_KEY, ELIDED_FIELDS, LocalPersistence, project_for_storage
from .memory import InMemoryDurableStore
from .sqlite import SqliteDurableStore

__all__ = [
    # Protocol
    "DurableStore",
    "DEFAULT_QUOTA_BYTES",
    # Implementations
    "SqliteDurableStore",
    "InMemoryDurableStore",
    # Snapshot cache
    "LocalPersistence",
    "project_for_storage",
    "ELIDED_FIELDS",
    "DEFAULT_SNAPSHOT_KEY",
    # Credentials
    "CredentialStore",
    "DEFAULT_CREDENTIALS_KEY",
]
