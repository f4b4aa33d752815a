"""
In-memory durable store for testing.

This module provides a dict-backed DurableStore for:
- Unit tests
- Integration tests
- Local development without a data directory

Invariants:
    - All data is lost on process exit
    - Same quota semantics as the SQLite backend

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with DurableStore protocol
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .base import DEFAULT_QUOTA_BYTES, check_quota, entry_size

logger = logging.getLogger(__name__)


class InMemoryDurableStore:
    """Dict-backed implementation of DurableStore.

    Attributes:
        quota_bytes: Byte quota across all keys (None = unlimited)

    Example:
        >>> store = InMemoryDurableStore(quota_bytes=1024)
        >>> store.set("k", "v")
        >>> store.get("k")
        'v'
    """

    def __init__(self, quota_bytes: Optional[int] = DEFAULT_QUOTA_BYTES) -> None:
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}
        self._fail_next: List[Exception] = []
        self.write_count = 0

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._fail_next:
            raise self._fail_next.pop(0)
        used = self.used_bytes() - (entry_size(key, self._data[key]) if key in self._data else 0)
        check_quota(key, used, value, self.quota_bytes)
        self._data[key] = value
        self.write_count += 1
        logger.debug("Durable write", extra={"key": key, "bytes": len(value)})

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    # Testing helpers

    def used_bytes(self) -> int:
        """Total bytes counted against the quota."""
        return sum(entry_size(k, v) for k, v in self._data.items())

    def inject_failure(self, exception: Exception) -> None:
        """Make the next set() raise ``exception``."""
        self._fail_next.append(exception)

    def keys(self) -> List[str]:
        return sorted(self._data)
