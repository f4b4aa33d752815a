"""
Error types for the school data store.

This module defines all exception types raised by the store:
- DataStoreError: Base exception
- LocalPersistenceError: Durable on-device write failed
- CapacityExceededError: Durable store quota exceeded
- RemoteSyncError: Base for remote document store failures
- RemoteUnauthorizedError: Credential rejected by the remote store
- RemoteNetworkError: Remote unreachable or returned a server error
- RemoteDisabledError: Sync entry point called with no credentials configured

Invariants:
    - All errors inherit from DataStoreError
    - The sanitizer never raises; substituted defaults are only logged
    - Background sync paths log these errors, explicit user actions re-raise them
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DataStoreError(Exception):
    """Base exception for all data store errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "DATASTORE_ERROR"
        self.details = details or {}


class LocalPersistenceError(DataStoreError):
    """Writing the snapshot to the durable local store failed.

    Never fatal: the in-memory snapshot stays canonical.
    """

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="LOCAL_PERSISTENCE",
            details={"key": key},
        )
        self.key = key


class CapacityExceededError(LocalPersistenceError):
    """The durable store refused a write because its quota is full.

    Attributes:
        key: Key being written
        required_bytes: Size the store would have after the write
        capacity_bytes: Configured quota
    """

    def __init__(
        self,
        key: str,
        required_bytes: int,
        capacity_bytes: int,
    ) -> None:
        super().__init__(
            f"Storage quota exceeded writing '{key}': "
            f"{required_bytes} bytes needed, {capacity_bytes} available",
            key=key,
        )
        self.code = "CAPACITY_EXCEEDED"
        self.details.update(
            {"required_bytes": required_bytes, "capacity_bytes": capacity_bytes}
        )
        self.required_bytes = required_bytes
        self.capacity_bytes = capacity_bytes


class RemoteSyncError(DataStoreError):
    """Base exception for remote document store failures.

    Attributes:
        status_code: Upstream status/error code if one was reported
    """

    def __init__(
        self,
        message: str,
        code: str = "REMOTE_ERROR",
        status_code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code, details={"status_code": status_code})
        self.status_code = status_code


class RemoteUnauthorizedError(RemoteSyncError):
    """The remote store rejected the configured credential.

    Terminal until the credentials are replaced.
    """

    def __init__(self, message: str, status_code: Optional[str] = None) -> None:
        super().__init__(message, code="REMOTE_UNAUTHORIZED", status_code=status_code)


class RemoteNetworkError(RemoteSyncError):
    """The remote store was unreachable or failed server-side.

    Retryable through an explicit force sync.
    """

    def __init__(self, message: str, status_code: Optional[str] = None) -> None:
        super().__init__(message, code="REMOTE_NETWORK", status_code=status_code)


class RemoteDisabledError(RemoteSyncError):
    """A sync operation was requested while no credentials are configured."""

    def __init__(self, message: str = "Remote sync is not configured") -> None:
        super().__init__(message, code="REMOTE_DISABLED")
