"""
Snapshot data model.

A Snapshot is the complete application dataset: a fixed set of named
collections of domain records plus a ``lastUpdated`` timestamp that drives
remote arbitration.

Document format (JSON, shared by the local cache and the remote row):
    {
        "students": [...],
        "teachers": [...],
        ...
        "penaltyConfig": {"interestRate": 1.0, ...},
        "lastUpdated": 1730000000000
    }

Invariants:
    - Every named collection is present (possibly empty) on a Snapshot
    - Snapshots are immutable; changes produce a new Snapshot
    - lastUpdated == 0 means "no real data" (built-in defaults)
    - Unknown top-level keys survive a round trip through ``extras``

How to change safely:
    - Add new collections to COLLECTIONS with a default of ()
    - Never rename a wire name; old cached/remote documents use it
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping

Record = dict[str, Any]

# Documents of unknown shape coming from the local cache, the remote store or
# an import. Only the sanitizer turns one into a Snapshot.
UntrustedDocument = Any

# (attribute name, wire name)
COLLECTIONS: tuple[tuple[str, str], ...] = (
    ("students", "students"),
    ("teachers", "teachers"),
    ("parents", "parents"),
    ("classes", "classes"),
    ("subjects", "subjects"),
    ("attendance", "attendance"),
    ("class_logs", "classLogs"),
    ("calendar_events", "calendarEvents"),
    ("transactions", "transactions"),
    ("users", "users"),
    ("grades", "grades"),
    ("favocoin_transactions", "favocoinTransactions"),
    ("store_items", "storeItems"),
    ("financial_categories", "financialCategories"),
    ("financial_services", "financialServices"),
    ("discount_rules", "discountRules"),
    ("cost_centers", "costCenters"),
    ("suppliers", "suppliers"),
)

COLLECTION_WIRE_NAMES: tuple[str, ...] = tuple(wire for _, wire in COLLECTIONS)

# Collections whose records can log in (carry email/password)
IDENTITY_COLLECTIONS: tuple[str, ...] = ("users", "teachers", "parents")

PENALTY_CONFIG_KEY = "penaltyConfig"
LAST_UPDATED_KEY = "lastUpdated"

RESERVED_DOCUMENT_KEYS = frozenset(COLLECTION_WIRE_NAMES) | {
    PENALTY_CONFIG_KEY,
    LAST_UPDATED_KEY,
}

_WIRE_TO_ATTR = {wire: attr for attr, wire in COLLECTIONS}


@dataclass(frozen=True)
class Snapshot:
    """The canonical application dataset.

    Collections are tuples of plain record mappings so a Snapshot can be
    handed out by value. Updaters build a new Snapshot with
    :meth:`with_collection` or :func:`dataclasses.replace`.

    Attributes:
        students ... suppliers: Named record collections
        penalty_config: Late-payment settings (interest, fine, grace days)
        last_updated: Timestamp of the last local change (Unix ms)
        extras: Unknown top-level document keys, preserved verbatim
    """

    students: tuple[Record, ...] = ()
    teachers: tuple[Record, ...] = ()
    parents: tuple[Record, ...] = ()
    classes: tuple[Record, ...] = ()
    subjects: tuple[Record, ...] = ()
    attendance: tuple[Record, ...] = ()
    class_logs: tuple[Record, ...] = ()
    calendar_events: tuple[Record, ...] = ()
    transactions: tuple[Record, ...] = ()
    users: tuple[Record, ...] = ()
    grades: tuple[Record, ...] = ()
    favocoin_transactions: tuple[Record, ...] = ()
    store_items: tuple[Record, ...] = ()
    financial_categories: tuple[Record, ...] = ()
    financial_services: tuple[Record, ...] = ()
    discount_rules: tuple[Record, ...] = ()
    cost_centers: tuple[Record, ...] = ()
    suppliers: tuple[Record, ...] = ()
    penalty_config: Record = field(default_factory=dict)
    last_updated: int = 0
    extras: Mapping[str, Any] = field(default_factory=dict)

    def collection(self, wire_name: str) -> tuple[Record, ...]:
        """Get a collection by its document name.

        Raises:
            KeyError: If wire_name is not a named collection
        """
        return getattr(self, _WIRE_TO_ATTR[wire_name])

    def with_collection(self, wire_name: str, records: Any) -> Snapshot:
        """Return a copy with one collection replaced."""
        return dataclasses.replace(self, **{_WIRE_TO_ATTR[wire_name]: tuple(records)})

    def with_collections(self, **by_wire_name: Any) -> Snapshot:
        """Return a copy with several collections replaced at once."""
        changes = {_WIRE_TO_ATTR[name]: tuple(records) for name, records in by_wire_name.items()}
        return dataclasses.replace(self, **changes)

    def stamped(self, last_updated: int) -> Snapshot:
        """Return a copy carrying a new lastUpdated."""
        return dataclasses.replace(self, last_updated=last_updated)

    @property
    def has_real_data(self) -> bool:
        """Whether this snapshot was ever stamped by a real change."""
        return self.last_updated > 0

    def to_document(self) -> dict[str, Any]:
        """Convert to a JSON-ready document.

        Records are deep-copied so callers can't mutate the snapshot.
        """
        doc: dict[str, Any] = copy.deepcopy(dict(self.extras))
        for attr, wire in COLLECTIONS:
            doc[wire] = [copy.deepcopy(r) for r in getattr(self, attr)]
        doc[PENALTY_CONFIG_KEY] = copy.deepcopy(self.penalty_config)
        doc[LAST_UPDATED_KEY] = self.last_updated
        return doc

    @classmethod
    def from_trusted(cls, document: Mapping[str, Any]) -> Snapshot:
        """Build a Snapshot from an already well-formed document.

        Only the sanitizer and the seed generator should call this;
        untrusted input goes through ``sanitize``.
        """
        kwargs: dict[str, Any] = {
            attr: tuple(copy.deepcopy(r) for r in document.get(wire, ()))
            for attr, wire in COLLECTIONS
        }
        kwargs["penalty_config"] = copy.deepcopy(dict(document.get(PENALTY_CONFIG_KEY) or {}))
        kwargs["last_updated"] = int(document.get(LAST_UPDATED_KEY) or 0)
        kwargs["extras"] = {
            k: copy.deepcopy(v) for k, v in document.items() if k not in RESERVED_DOCUMENT_KEYS
        }
        return cls(**kwargs)

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{wire}={len(getattr(self, attr))}" for attr, wire in COLLECTIONS if getattr(self, attr)
        )
        return f"Snapshot(last_updated={self.last_updated}, {counts})"
