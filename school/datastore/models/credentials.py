"""
Remote credentials model.

Stored as ``{"url": ..., "key": ...}`` under its own durable key, separate
from the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RemoteCredentials:
    """Endpoint and API key for the remote document store.

    Attributes:
        endpoint: Base URL of the remote project
        key: API key sent with every request
    """

    endpoint: str = ""
    key: str = ""

    @property
    def is_complete(self) -> bool:
        """Remote sync is active iff both fields are non-empty."""
        return bool(self.endpoint.strip()) and bool(self.key.strip())

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for serialization."""
        return {"url": self.endpoint, "key": self.key}

    @classmethod
    def from_dict(cls, data: Any) -> RemoteCredentials:
        """Create from a stored dictionary; anything malformed yields empty credentials."""
        if not isinstance(data, dict):
            return cls()
        endpoint = data.get("url", data.get("endpoint", ""))
        key = data.get("key", "")
        return cls(
            endpoint=endpoint.strip() if isinstance(endpoint, str) else "",
            key=key.strip() if isinstance(key, str) else "",
        )

    def redacted(self) -> dict[str, str]:
        """Loggable form; the key is never logged."""
        return {"url": self.endpoint, "key": "***" if self.key else ""}

    def __repr__(self) -> str:
        masked = "***" if self.key else ""
        return f"RemoteCredentials(endpoint={self.endpoint!r}, key={masked!r})"
