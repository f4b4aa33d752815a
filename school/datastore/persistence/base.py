"""
Base protocol for durable on-device key/value storage.

Both the snapshot cache and the remote credentials live in a durable store
with browser-storage semantics: string keys, string values, synchronous
calls and a fixed byte quota.

Invariants:
    - get() returns None for a missing key, never raises for it
    - set() either stores the whole value or raises; no partial writes
    - set() raises CapacityExceededError when the quota would be exceeded

How to change safely:
    - New backends must implement DurableStore
    - Keep calls synchronous; the store is written from the event loop thread
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol, runtime_checkable

from ..errors import CapacityExceededError

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024  # 5MB, typical browser local storage


@runtime_checkable
class DurableStore(Protocol):
    """Protocol for durable key/value backends.

    Example:
        >>> store = SqliteDurableStore("/var/lib/school/local.db")
        >>> store.set("school-data", json.dumps(document))
        >>> raw = store.get("school-data")
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: String value

        Raises:
            CapacityExceededError: If the write would exceed the quota
        """
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key if present."""
        ...


def entry_size(key: str, value: str) -> int:
    """Bytes an entry counts against the quota."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def check_quota(key: str, used_by_others: int, value: str, quota_bytes: Optional[int]) -> None:
    """Raise if writing ``value`` under ``key`` would exceed the quota.

    Args:
        key: Key being written
        used_by_others: Bytes used by every other key
        value: New value
        quota_bytes: Quota, or None for unlimited

    Raises:
        CapacityExceededError: If the quota would be exceeded
    """
    if quota_bytes is None:
        return
    required = used_by_others + entry_size(key, value)
    if required > quota_bytes:
        raise CapacityExceededError(key, required_bytes=required, capacity_bytes=quota_bytes)
