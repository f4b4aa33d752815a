"""
Startup arbitration between the local and remote snapshots.

Whole-snapshot, timestamp-only: the side with the newer ``lastUpdated``
wins, and a local snapshot that never held real data (``lastUpdated == 0``)
loses to any remote snapshot that did.

    local  remote  result
    0      0       keep local
    100    50      keep local
    0      500     adopt remote
    500    0       keep local

Clock skew between devices is not corrected, and edits to different
records on two devices are not merged; the older snapshot is discarded.
"""

from __future__ import annotations

from enum import Enum


class ArbitrationOutcome(Enum):
    """Result of one arbitration run."""

    ADOPTED_REMOTE = "adopted_remote"
    KEPT_LOCAL = "kept_local"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"
    SUPERSEDED = "superseded"
    DISABLED = "disabled"


def should_adopt_remote(local_ts: int, remote_ts: int) -> bool:
    """Decide whether the remote snapshot replaces the local one.

    Args:
        local_ts: Local lastUpdated (0 = no real data)
        remote_ts: Remote lastUpdated (0 = no real data)
    """
    local_ts = max(local_ts or 0, 0)
    remote_ts = max(remote_ts or 0, 0)
    return remote_ts > local_ts or (local_ts == 0 and remote_ts > 0)
