"""
Calling convention for domain actions.

A domain action is a builder that returns a pure ``Snapshot -> Snapshot``
updater. Everything non-deterministic (new identifiers, today's date) is
captured in an ActionContext when the updater is built, so applying the same
updater to the same snapshot always yields the same result.

Example:
    >>> ctx = ActionContext.capture()
    >>> dispatcher.dispatch(add_student(ctx, {"name": "Ana"}, {"name": "Sr. Lima"}))

Invariants:
    - Updaters never read the clock or generate ids
    - Updaters never mutate the snapshot or its records in place
    - StateStore.apply() is the only place an updater runs
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from ..models import Snapshot
from ..state import StateStore, Updater

logger = logging.getLogger(__name__)


def random_id(prefix: str) -> str:
    """Generate a new record identifier like ``stu-3f9c2a1b7d4e``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ActionContext:
    """Values captured once when an action is built.

    Attributes:
        today: Reference day for dated records
        id_factory: Produces a new identifier for a prefix
    """

    today: date
    id_factory: Callable[[str], str] = field(default=random_id, compare=False)

    @classmethod
    def capture(
        cls,
        today: Optional[date] = None,
        id_factory: Optional[Callable[[str], str]] = None,
    ) -> ActionContext:
        return cls(today=today or date.today(), id_factory=id_factory or random_id)

    def new_id(self, prefix: str) -> str:
        return self.id_factory(prefix)

    @property
    def today_iso(self) -> str:
        return self.today.isoformat()


class ActionDispatcher:
    """Routes action updaters to the state store.

    Args:
        store: The state store owning the canonical snapshot
        context_factory: Builds the ActionContext for each action
    """

    def __init__(
        self,
        store: StateStore,
        context_factory: Callable[[], ActionContext] = ActionContext.capture,
    ) -> None:
        self._store = store
        self._context_factory = context_factory

    def context(self) -> ActionContext:
        """Capture a fresh context for building one action."""
        return self._context_factory()

    def dispatch(self, updater: Updater) -> Snapshot:
        """Apply an updater through the state store.

        Returns:
            The installed snapshot
        """
        installed = self._store.apply(updater)
        logger.debug(
            "Action applied",
            extra={
                "action": getattr(updater, "__qualname__", repr(updater)),
                "last_updated": installed.last_updated,
            },
        )
        return installed
