"""
State module - the canonical snapshot and its mutation primitive.

Invariants:
    - StateStore.apply() is the only path for content changes
    - Whole-state replacement always goes through the sanitizer
"""

from .store import ChangeOrigin, Listener, StateStore, Updater, wall_clock_ms

__all__ = [
    "StateStore",
    "ChangeOrigin",
    "Updater",
    "Listener",
    "wall_clock_ms",
]
