"""
Data model for the school data store.

- Snapshot: the whole application dataset plus lastUpdated
- UntrustedDocument: JSON of unknown shape, converted only by the sanitizer
- RemoteCredentials: endpoint/key for the remote document store
"""

from .credentials import RemoteCredentials
from .snapshot import (
    COLLECTION_WIRE_NAMES,
    COLLECTIONS,
    IDENTITY_COLLECTIONS,
    LAST_UPDATED_KEY,
    PENALTY_CONFIG_KEY,
    RESERVED_DOCUMENT_KEYS,
    Record,
    Snapshot,
    UntrustedDocument,
)

__all__ = [
    "Snapshot",
    "Record",
    "UntrustedDocument",
    "RemoteCredentials",
    "COLLECTIONS",
    "COLLECTION_WIRE_NAMES",
    "IDENTITY_COLLECTIONS",
    "PENALTY_CONFIG_KEY",
    "LAST_UPDATED_KEY",
    "RESERVED_DOCUMENT_KEYS",
]
