"""
Generic record updaters shared by the domain actions.

Records are matched by their ``id`` field. Missing ids are not an error:
updating or removing an unknown record leaves the collection unchanged.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable, Mapping, Optional

from ..models import Record, Snapshot
from ..state import Updater
from .dispatcher import ActionContext


def find_record(records: Iterable[Record], record_id: Any) -> Optional[Record]:
    for record in records:
        if record.get("id") == record_id:
            return record
    return None


def append_record(collection: str, record: Mapping[str, Any]) -> Updater:
    """Append a record to a collection."""
    new_record = dict(record)

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection(
            collection, [*snapshot.collection(collection), dict(new_record)]
        )

    return updater


def add_record(
    ctx: ActionContext,
    collection: str,
    prefix: str,
    fields: Mapping[str, Any],
) -> Updater:
    """Append a record under a newly generated id."""
    return append_record(collection, {**fields, "id": ctx.new_id(prefix)})


def update_record(collection: str, record_id: Any, changes: Mapping[str, Any]) -> Updater:
    """Merge changes into the record with the given id."""
    changes = dict(changes)
    changes.pop("id", None)

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection(
            collection,
            [
                {**r, **changes} if r.get("id") == record_id else r
                for r in snapshot.collection(collection)
            ],
        )

    return updater


def remove_record(collection: str, record_id: Any) -> Updater:
    """Remove the record with the given id."""

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection(
            collection,
            [r for r in snapshot.collection(collection) if r.get("id") != record_id],
        )

    return updater


def set_penalty_config(config: Mapping[str, Any]) -> Updater:
    """Replace the late-payment settings."""
    new_config = dict(config)

    def updater(snapshot: Snapshot) -> Snapshot:
        return dataclasses.replace(snapshot, penalty_config=dict(new_config))

    return updater
