"""
Sync status surfaced to the UI.

The status is a small value (state + optional error kind) with one short
human-readable text. It is the only telemetry the core exposes; the UI polls
or observes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """User-visible sync states."""

    LOCAL_ONLY = "local_only"
    SAVING = "saving"
    PUSHING = "pushing"
    PULLING = "pulling"
    SYNCED_REMOTE = "synced_remote"
    SYNCED_FROM_REMOTE = "synced_from_remote"
    PULLED = "pulled"
    ERROR = "error"


class ErrorKind(Enum):
    """Error categories carried by SyncState.ERROR."""

    UNAUTHORIZED = "unauthorized"
    NETWORK_OR_SERVER = "network_or_server"
    LOCAL_STORAGE = "local_storage"
    PUSH_FAILED = "push_failed"
    PULL_FAILED = "pull_failed"


_STATE_TEXT = {
    SyncState.LOCAL_ONLY: "Saved locally",
    SyncState.SAVING: "Saving...",
    SyncState.PUSHING: "Uploading...",
    SyncState.PULLING: "Downloading...",
    SyncState.SYNCED_REMOTE: "Saved to cloud",
    SyncState.SYNCED_FROM_REMOTE: "Synced from cloud",
    SyncState.PULLED: "Data downloaded",
}

_ERROR_TEXT = {
    ErrorKind.UNAUTHORIZED: "Invalid key - check settings (use the anon/public API key)",
    ErrorKind.NETWORK_OR_SERVER: "Cloud save failed",
    ErrorKind.LOCAL_STORAGE: "Local error: storage full",
    ErrorKind.PUSH_FAILED: "Upload failed",
    ErrorKind.PULL_FAILED: "Download failed",
}


@dataclass(frozen=True)
class SyncStatus:
    """Current sync status.

    Attributes:
        state: Sync state
        error: Error kind when state is ERROR
    """

    state: SyncState = SyncState.LOCAL_ONLY
    error: Optional[ErrorKind] = None

    @property
    def text(self) -> str:
        """Short human-readable status line."""
        if self.state is SyncState.ERROR:
            return _ERROR_TEXT.get(self.error, "Sync error") if self.error else "Sync error"
        return _STATE_TEXT[self.state]

    @property
    def is_error(self) -> bool:
        return self.state is SyncState.ERROR

    @classmethod
    def failed(cls, kind: ErrorKind) -> SyncStatus:
        return cls(SyncState.ERROR, kind)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "error": self.error.value if self.error else None,
            "text": self.text,
        }


class StatusBoard:
    """Holds the current SyncStatus and notifies observers on change."""

    def __init__(self, initial: SyncStatus | None = None) -> None:
        self._status = initial or SyncStatus()
        self._observers: List[Callable[[SyncStatus], None]] = []

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def text(self) -> str:
        return self._status.text

    def set(self, state: SyncState, error: Optional[ErrorKind] = None) -> None:
        status = SyncStatus(state, error)
        if status == self._status:
            return
        self._status = status
        logger.debug("Sync status changed", extra=status.to_dict())
        for observer in list(self._observers):
            try:
                observer(status)
            except Exception:
                logger.error("Status observer failed", exc_info=True)

    def fail(self, kind: ErrorKind) -> None:
        self.set(SyncState.ERROR, kind)

    def observe(self, observer: Callable[[SyncStatus], None]) -> Callable[[], None]:
        """Register an observer; returns a function that removes it."""
        self._observers.append(observer)
        return lambda: self._observers.remove(observer) if observer in self._observers else None
