"""
In-memory remote document store for testing.

Behaves like the PostgREST backend (one row per id, upsert overwrites) and
records every call so tests can assert on network traffic.

Testing helpers:
    - calls / upserts: recorded traffic
    - fail_next(exc) / fail_always(exc): failure injection
    - latency_seconds: simulated round-trip time
    - put(): seed a row without recording a call
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import RemoteDocument


@dataclass
class RecordedCall:
    """One call made against the store."""

    operation: str
    document_id: Any
    content: Any = None


class InMemoryDocumentStore:
    """RemoteDocumentStore backed by a dict."""

    def __init__(self, latency_seconds: float = 0.0) -> None:
        self.latency_seconds = latency_seconds
        self._rows: Dict[Any, RemoteDocument] = {}
        self.calls: List[RecordedCall] = []
        self._next_failure: Optional[Exception] = None
        self._permanent_failure: Optional[Exception] = None
        self.closed = False

    async def select(self, document_id: Any) -> Optional[RemoteDocument]:
        self.calls.append(RecordedCall("select", document_id))
        await self._simulate()
        row = self._rows.get(document_id)
        if row is None:
            return None
        return RemoteDocument(document_id, copy.deepcopy(row.content), row.updated_at)

    async def upsert(self, document_id: Any, content: Any, updated_at: datetime) -> None:
        self.calls.append(RecordedCall("upsert", document_id, copy.deepcopy(content)))
        await self._simulate()
        self._rows[document_id] = RemoteDocument(document_id, copy.deepcopy(content), updated_at)

    async def close(self) -> None:
        self.closed = True

    # Testing helpers

    def put(self, document_id: Any, content: Any) -> None:
        self._rows[document_id] = RemoteDocument(
            document_id, copy.deepcopy(content), datetime.now(timezone.utc)
        )

    def row(self, document_id: Any) -> Optional[RemoteDocument]:
        return self._rows.get(document_id)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def upserts(self) -> List[RecordedCall]:
        return [c for c in self.calls if c.operation == "upsert"]

    @property
    def selects(self) -> List[RecordedCall]:
        return [c for c in self.calls if c.operation == "select"]

    def fail_next(self, exc: Exception) -> None:
        self._next_failure = exc

    def fail_always(self, exc: Optional[Exception]) -> None:
        """Fail every call with exc; pass None to stop failing."""
        self._permanent_failure = exc

    async def _simulate(self) -> None:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        if self._next_failure is not None:
            exc, self._next_failure = self._next_failure, None
            raise exc
        if self._permanent_failure is not None:
            raise self._permanent_failure
