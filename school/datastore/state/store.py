"""
Canonical in-memory snapshot store.

StateStore owns the one canonical Snapshot. Content changes only through:
- apply(updater): the mutation primitive used by every domain action
- replace(candidate): whole-state replacement (import, remote adoption),
  always routed through the sanitizer

After every change the registered listeners run in registration order. The
service uses them to persist locally and schedule a remote push.

Invariants:
    - apply() stamps lastUpdated; stamps are strictly increasing in-process
    - An updater that raises leaves the canonical snapshot unchanged
    - apply() calls run one at a time in call order (single event loop)
    - No other code constructs a canonical Snapshot

How to change safely:
    - Keep updaters pure; the store may be asked to apply the same updater
      more than once
    - Listeners must not raise; failures are logged and the next listener runs
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, List

from ..models.snapshot import Snapshot, UntrustedDocument
from ..sanitize import sanitize

logger = logging.getLogger(__name__)

Updater = Callable[[Snapshot], Snapshot]


class ChangeOrigin(Enum):
    """Where a snapshot change came from."""

    LOCAL_EDIT = "local_edit"
    IMPORT = "import"
    REMOTE = "remote"


Listener = Callable[[Snapshot, ChangeOrigin], None]


def wall_clock_ms() -> int:
    """Current wall-clock time in Unix ms."""
    return int(time.time() * 1000)


class StateStore:
    """Owner of the canonical snapshot.

    Attributes:
        defaults_factory: Builds the fallback snapshot for sanitization
        clock: Returns the current time in Unix ms

    Example:
        >>> store = StateStore(build_default_snapshot(), build_default_snapshot)
        >>> store.apply(lambda s: s.with_collection("subjects", [*s.subjects, subject]))
    """

    def __init__(
        self,
        initial: Snapshot,
        defaults_factory: Callable[[], Snapshot],
        clock: Callable[[], int] = wall_clock_ms,
    ) -> None:
        self._snapshot = initial
        self.defaults_factory = defaults_factory
        self.clock = clock
        self._listeners: List[Listener] = []
        self._version = 0

    def current(self) -> Snapshot:
        """The canonical snapshot."""
        return self._snapshot

    @property
    def version(self) -> int:
        """Number of changes installed since construction."""
        return self._version

    def apply(self, updater: Updater) -> Snapshot:
        """Compute, stamp and install the next snapshot.

        Args:
            updater: Pure function from the current snapshot to the next one

        Returns:
            The installed snapshot

        Raises:
            TypeError: If the updater does not return a Snapshot
        """
        current = self._snapshot
        proposed = updater(current)
        if not isinstance(proposed, Snapshot):
            raise TypeError(
                f"Updater must return a Snapshot, got {type(proposed).__name__}"
            )
        installed = proposed.stamped(self._next_stamp(current))
        self._install(installed, ChangeOrigin.LOCAL_EDIT)
        return installed

    def replace(
        self,
        candidate: UntrustedDocument,
        origin: ChangeOrigin = ChangeOrigin.IMPORT,
        stamp: bool = True,
    ) -> Snapshot:
        """Swap the whole snapshot for a sanitized candidate.

        Args:
            candidate: Untrusted document (import file, remote content)
            origin: Reported to listeners
            stamp: Stamp with the local clock (imports) or keep the
                candidate's own lastUpdated (remote adoption)

        Returns:
            The installed snapshot
        """
        current = self._snapshot
        installed = sanitize(candidate, self.defaults_factory())
        if stamp:
            installed = installed.stamped(self._next_stamp(current))
        self._install(installed, origin)
        logger.info(
            "Snapshot replaced",
            extra={"origin": origin.value, "last_updated": installed.last_updated},
        )
        return installed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _next_stamp(self, current: Snapshot) -> int:
        now = self.clock()
        if now <= current.last_updated:
            now = current.last_updated + 1
        return now

    def _install(self, snapshot: Snapshot, origin: ChangeOrigin) -> None:
        self._snapshot = snapshot
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(snapshot, origin)
            except Exception:
                logger.error("Snapshot listener failed", exc_info=True)
