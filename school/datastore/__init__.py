"""
School data store - local-first snapshot store with cloud sync.

The whole application dataset (students, classes, grades, ledger, rewards,
...) is one immutable Snapshot owned by a single StateStore:
- Domain actions are pure Snapshot -> Snapshot updaters
- Every change is written to a local durable cache immediately
- Changes are pushed to one remote document after a quiet period
- At startup, local and remote copies are arbitrated by lastUpdated

Architecture:
    ┌──────────────┐   updater   ┌─────────────┐   change    ┌──────────────────┐
    │ Domain action│────────────▶│ StateStore  │────────────▶│ LocalPersistence │
    └──────────────┘             └──────┬──────┘             │ (SQLite cache)   │
                                        │                    └──────────────────┘
                                        │ debounced push
                                        ▼
                                 ┌─────────────┐   select/upsert   ┌────────────┐
                                 │ RemoteSync  │──────────────────▶│ PostgREST  │
                                 └─────────────┘◀──────────────────│ school_data│
                                    arbitration                    └────────────┘

Invariants:
    - StateStore.apply() is the only way snapshot content changes
    - Untrusted documents become Snapshots only through the sanitizer
    - lastUpdated == 0 means "no real data" and loses every arbitration
    - Background sync never raises; explicit sync actions do

How to change safely:
    - Never rename a document key; cached and remote copies use them
    - New collections need a default in the seed snapshot
"""

from ._version import __version__

__all__ = ["__version__"]
