"""
Base protocol and types for the remote document store.

The whole snapshot lives remotely as one row of one table, addressed by a
fixed identifier. The store only needs two calls:
- select(id): read the row, or None if it doesn't exist
- upsert(id, content, updated_at): create or overwrite the row

Invariants:
    - upsert() is idempotent under the fixed identifier; re-pushing never
      creates duplicate rows
    - Errors are classified only as unauthorized vs. everything else

How to change safely:
    - Protocol changes require updating all implementations
    - Keep error classification in one place (classify_remote_error)
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from ..errors import RemoteNetworkError, RemoteSyncError, RemoteUnauthorizedError
from ..sanitize import coerce_timestamp

DEFAULT_TABLE = "school_data"
DEFAULT_DOCUMENT_ID = 1

_UNAUTHORIZED_CODES = {"401", "403", "PGRST301", "PGRST302"}


@dataclass(frozen=True)
class RemoteDocument:
    """The remote row holding the snapshot.

    Attributes:
        document_id: Fixed row identifier
        content: Snapshot-shaped JSON (untrusted)
        updated_at: Server-side write time, informational only
    """

    document_id: Any
    content: Any
    updated_at: Optional[datetime] = None

    @property
    def last_updated(self) -> int:
        """lastUpdated carried inside the content, read as sanitize() reads it."""
        if isinstance(self.content, dict):
            return coerce_timestamp(self.content.get("lastUpdated"))
        return 0


@runtime_checkable
class RemoteDocumentStore(Protocol):
    """Protocol for remote document store backends.

    Example:
        >>> remote = PostgrestDocumentStore(credentials)
        >>> doc = await remote.select(1)
        >>> await remote.upsert(1, snapshot.to_document(), datetime.now(timezone.utc))
    """

    @abstractmethod
    async def select(self, document_id: Any) -> Optional[RemoteDocument]:
        """Read the document.

        Returns:
            RemoteDocument, or None if no row exists

        Raises:
            RemoteUnauthorizedError: If the credential was rejected
            RemoteNetworkError: For any other failure
        """
        ...

    @abstractmethod
    async def upsert(self, document_id: Any, content: Any, updated_at: datetime) -> None:
        """Create or overwrite the document.

        Raises:
            RemoteUnauthorizedError: If the credential was rejected
            RemoteNetworkError: For any other failure
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        ...


def classify_remote_error(code: Optional[str], message: str) -> RemoteSyncError:
    """Map an upstream error to the core's two-way taxonomy.

    Args:
        code: Upstream status or error code
        message: Upstream error message

    Returns:
        RemoteUnauthorizedError for rejected credentials, RemoteNetworkError otherwise
    """
    code_str = str(code) if code is not None else None
    if code_str in _UNAUTHORIZED_CODES or "invalid api key" in (message or "").lower():
        return RemoteUnauthorizedError(message, status_code=code_str)
    return RemoteNetworkError(message, status_code=code_str)
