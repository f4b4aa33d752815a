"""
Local persistence of the snapshot.

LocalPersistence keeps a durable on-device copy of the canonical snapshot:
- save(): written synchronously on every change
- load(): read once at startup, through the sanitizer

Large embedded binary fields (student photos) are elided from the durable
copy to stay under the storage quota. They remain in memory and in the
remote document.

Invariants:
    - A failed save never touches the in-memory snapshot
    - load() never raises; unreadable data yields the built-in defaults
    - Only the projection is written, never the raw snapshot

How to change safely:
    - Adding a field to ELIDED_FIELDS drops it from the cache; make sure the
      remote copy or the user can restore it
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Mapping

from ..errors import LocalPersistenceError
from ..models.snapshot import Snapshot
from ..sanitize import sanitize
from .base import DurableStore

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "school-data"

# collection -> record fields dropped from the durable copy
ELIDED_FIELDS: Mapping[str, tuple[str, ...]] = {
    "students": ("photoUrl",),
}


def project_for_storage(
    snapshot: Snapshot,
    elided_fields: Mapping[str, tuple[str, ...]] = ELIDED_FIELDS,
) -> dict:
    """Build the document written to the durable store.

    Args:
        snapshot: Canonical snapshot
        elided_fields: Record fields to drop per collection

    Returns:
        JSON-ready document without the elided fields
    """
    document = snapshot.to_document()
    for collection, fields in elided_fields.items():
        document[collection] = [
            {k: v for k, v in record.items() if k not in fields}
            for record in document.get(collection, [])
        ]
    return document


class LocalPersistence:
    """Durable on-device cache of the snapshot.

    Attributes:
        store: Durable key/value backend
        key: Storage key for the snapshot
        defaults_factory: Builds the built-in default snapshot

    Example:
        >>> local = LocalPersistence(SqliteDurableStore(path), build_default_snapshot)
        >>> snapshot = local.load()
        >>> local.save(snapshot)
    """

    def __init__(
        self,
        store: DurableStore,
        defaults_factory: Callable[[], Snapshot],
        key: str = DEFAULT_SNAPSHOT_KEY,
        elided_fields: Mapping[str, tuple[str, ...]] = ELIDED_FIELDS,
    ) -> None:
        self.store = store
        self.defaults_factory = defaults_factory
        self.key = key
        self.elided_fields = elided_fields

    def load(self) -> Snapshot:
        """Read the cached snapshot.

        Returns:
            Sanitized cached snapshot, or the built-in defaults if there is
            no cache or it cannot be parsed
        """
        defaults = self.defaults_factory()
        try:
            raw = self.store.get(self.key)
        except Exception:
            logger.error("Could not read local snapshot cache", exc_info=True)
            return defaults

        if raw is None:
            logger.info("No local snapshot cache, using built-in defaults")
            return defaults

        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Local snapshot cache is not valid JSON, using defaults: {e}")
            return defaults

        snapshot = sanitize(parsed, defaults)
        logger.info(
            "Local snapshot loaded",
            extra={"key": self.key, "last_updated": snapshot.last_updated},
        )
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Write the storage projection of ``snapshot``.

        Raises:
            LocalPersistenceError: If the durable store refused the write
                (CapacityExceededError when the quota is full)
        """
        payload = json.dumps(
            project_for_storage(snapshot, self.elided_fields),
            ensure_ascii=False,
            separators=(",", ":"),
        )
        try:
            self.store.set(self.key, payload)
        except LocalPersistenceError:
            logger.error(
                "Local snapshot write refused (storage full?)",
                extra={"key": self.key, "bytes": len(payload)},
            )
            raise
        except Exception as e:
            logger.error(f"Local snapshot write failed: {e}", exc_info=True)
            raise LocalPersistenceError(f"Local snapshot write failed: {e}", key=self.key) from e
