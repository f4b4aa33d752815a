"""
Remote synchronization for the school data store.

This module provides:
- RemoteDocumentStore protocol with PostgREST and in-memory backends
- RemoteSync: startup arbitration, debounced push, force push/pull
- CoalescingScheduler: single-slot trailing-edge scheduler
- SyncStatus / StatusBoard: the status string shown to the user

Invariants:
    - Remote content enters the snapshot only through the sanitizer
    - Background sync never raises; explicit sync actions do
"""

from .arbitration import ArbitrationOutcome, should_adopt_remote
from .base import (
    DEFAULT_DOCUMENT_ID,
    DEFAULT_TABLE,
    RemoteDocument,
    RemoteDocumentStore,
    classify_remote_error,
)
from .memory import InMemoryDocumentStore, RecordedCall
from .postgrest import PostgrestDocumentStore
from .remote import DEFAULT_PUSH_DEBOUNCE_SECONDS, RemoteState, RemoteSync
from .scheduler import CoalescingScheduler
from .status import ErrorKind, StatusBoard, SyncState, SyncStatus

__all__ = [
    # Protocol
    "RemoteDocumentStore",
    "RemoteDocument",
    "classify_remote_error",
    "DEFAULT_TABLE",
    "DEFAULT_DOCUMENT_ID",
    # Implementations
    "PostgrestDocumentStore",
    "InMemoryDocumentStore",
    "RecordedCall",
    # Sync
    "RemoteSync",
    "RemoteState",
    "DEFAULT_PUSH_DEBOUNCE_SECONDS",
    "ArbitrationOutcome",
    "should_adopt_remote",
    "CoalescingScheduler",
    # Status
    "SyncState",
    "SyncStatus",
    "ErrorKind",
    "StatusBoard",
]
