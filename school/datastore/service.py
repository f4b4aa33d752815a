"""
School data service - wires the store, local cache and remote sync.

Startup sequence:
1. Load remote credentials (seeded from the environment if none are saved)
2. Load the local snapshot cache (or the built-in defaults)
3. Connect remote sync and run the one-time arbitration

Change effect (runs after every installed snapshot):
- local edit / import: status Saving, write the local cache, then schedule
  a debounced push if sync is enabled, otherwise status LocalOnly
- remote adoption / pull: write the local cache only

Invariants:
    - The local write happens before the call that caused it returns
    - A failed local write never blocks the remote push for the same change
    - Background failures only change the status; explicit sync actions raise

How to change safely:
    - Keep the effect in _on_change; components must not call each other
      outside this module
    - Test start/stop with the in-memory backends
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .actions import ActionContext, ActionDispatcher
from .config import AppConfig
from .errors import LocalPersistenceError
from .models import RemoteCredentials, Snapshot, UntrustedDocument
from .persistence import CredentialStore, DurableStore, LocalPersistence
from .sanitize import build_default_snapshot
from .state import ChangeOrigin, StateStore, Updater, wall_clock_ms
from .sync import (
    ArbitrationOutcome,
    ErrorKind,
    PostgrestDocumentStore,
    RemoteDocumentStore,
    RemoteSync,
    StatusBoard,
    SyncState,
    SyncStatus,
)

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[RemoteCredentials], RemoteDocumentStore]


class ServiceNotStartedError(RuntimeError):
    """An operation needing the loaded snapshot was called before start()."""


class SchoolDataService:
    """Local-first snapshot store with cloud sync.

    Attributes:
        config: Service configuration
        local: Snapshot cache
        credential_store: Saved remote credentials
        status_board: Current sync status
        state: State store (available after start())
        remote: Remote sync (available after start())

    Example:
        >>> service = SchoolDataService(SqliteDurableStore(path))
        >>> await service.start()
        >>> service.dispatch(save_grades("subj-1", "2025-03-10", grades))
        >>> service.status_text
        'Saving...'
        >>> await service.stop()
    """

    def __init__(
        self,
        durable_store: DurableStore,
        config: AppConfig | None = None,
        remote_factory: Optional[RemoteFactory] = None,
        defaults_factory: Callable[[], Snapshot] = build_default_snapshot,
        clock: Callable[[], int] = wall_clock_ms,
        context_factory: Callable[[], ActionContext] = ActionContext.capture,
    ) -> None:
        self.config = config or AppConfig()
        self.defaults_factory = defaults_factory
        self.local = LocalPersistence(
            durable_store, defaults_factory, key=self.config.storage.snapshot_key
        )
        self.credential_store = CredentialStore(
            durable_store, key=self.config.storage.credentials_key
        )
        self.status_board = StatusBoard()
        self._remote_factory = remote_factory or self._postgrest_factory
        self._clock = clock
        self._context_factory = context_factory
        self._running = False
        self._unsubscribe: Optional[Callable[[], None]] = None

        # Initialized in start()
        self.state: StateStore | None = None
        self.remote: RemoteSync | None = None
        self.dispatcher: ActionDispatcher | None = None

    def _postgrest_factory(self, credentials: RemoteCredentials) -> RemoteDocumentStore:
        return PostgrestDocumentStore(credentials, table=self.config.remote.table)

    @property
    def running(self) -> bool:
        return self._running

    @property
    def status(self) -> SyncStatus:
        return self.status_board.status

    @property
    def status_text(self) -> str:
        """Single short human-readable status line for the UI."""
        return self.status_board.text

    @property
    def credentials(self) -> RemoteCredentials:
        return self.credential_store.load()

    @property
    def sync_enabled(self) -> bool:
        return self.remote is not None and self.remote.enabled

    async def start(self) -> ArbitrationOutcome:
        """Load local state and run the startup arbitration.

        Returns:
            Outcome of the arbitration
        """
        if self._running:
            raise RuntimeError("Service already started")

        logger.info("Starting school data service")
        credentials = self._load_credentials()
        snapshot = self.local.load()

        self.state = StateStore(snapshot, self.defaults_factory, clock=self._clock)
        self.dispatcher = ActionDispatcher(self.state, context_factory=self._context_factory)
        self.remote = RemoteSync(
            self.state,
            self.status_board,
            self._remote_factory,
            document_id=self.config.remote.document_id,
            debounce_seconds=self.config.remote.push_debounce_seconds,
        )
        self._unsubscribe = self.state.subscribe(self._on_change)
        self.status_board.set(SyncState.LOCAL_ONLY)
        self._running = True

        outcome = await self.remote.connect(credentials)
        logger.info(
            "School data service started",
            extra={
                "arbitration": outcome.value,
                "last_updated": self.state.current().last_updated,
                "sync_enabled": self.remote.enabled,
            },
        )
        return outcome

    async def stop(self) -> None:
        """Send any pending push, then release the remote connection."""
        if not self._running:
            return
        logger.info("Stopping school data service")
        if self.remote is not None:
            await self.remote.flush()
            await self.remote.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._running = False
        logger.info("School data service stopped")

    def current(self) -> Snapshot:
        return self._require_state().current()

    def dispatch(self, updater: Updater) -> Snapshot:
        """Apply a domain action.

        Returns:
            The installed snapshot
        """
        if self.dispatcher is None:
            raise ServiceNotStartedError("Service not started")
        return self.dispatcher.dispatch(updater)

    def action_context(self) -> ActionContext:
        return self._context_factory()

    def import_snapshot(self, document: UntrustedDocument) -> Snapshot:
        """Replace the whole snapshot with an imported document.

        The document is sanitized and stamped like a local edit, so it is
        cached and pushed.
        """
        return self._require_state().replace(document, origin=ChangeOrigin.IMPORT, stamp=True)

    async def update_credentials(self, endpoint: str, key: str) -> ArbitrationOutcome:
        """Save new remote credentials and reconnect.

        Raises:
            LocalPersistenceError: If the credentials could not be saved
        """
        credentials = RemoteCredentials(endpoint=endpoint.strip(), key=key.strip())
        self.credential_store.save(credentials)
        if self.remote is None:
            raise ServiceNotStartedError("Service not started")
        if not credentials.is_complete:
            self.status_board.set(SyncState.LOCAL_ONLY)
        return await self.remote.connect(credentials)

    async def force_sync(self) -> None:
        """Push the current snapshot now.

        Raises:
            RemoteDisabledError: If no credentials are configured
            RemoteSyncError: If the push failed
        """
        if self.remote is None:
            raise ServiceNotStartedError("Service not started")
        await self.remote.force_push()

    async def force_pull(self) -> Optional[Snapshot]:
        """Replace the local snapshot with the remote copy.

        Raises:
            RemoteDisabledError: If no credentials are configured
            RemoteSyncError: If the pull failed
        """
        if self.remote is None:
            raise ServiceNotStartedError("Service not started")
        return await self.remote.force_pull()

    def _require_state(self) -> StateStore:
        if self.state is None:
            raise ServiceNotStartedError("Service not started")
        return self.state

    def _load_credentials(self) -> RemoteCredentials:
        try:
            credentials = self.credential_store.load()
        except Exception:
            logger.error("Could not read saved remote credentials", exc_info=True)
            credentials = RemoteCredentials()
        if credentials.is_complete:
            return credentials

        seed = self.config.remote.seed_credentials
        if not seed.is_complete:
            return credentials
        logger.info("Seeding remote credentials from environment", extra=seed.redacted())
        try:
            self.credential_store.save(seed)
        except LocalPersistenceError:
            logger.warning("Could not save seeded remote credentials", exc_info=True)
        return seed

    def _on_change(self, snapshot: Snapshot, origin: ChangeOrigin) -> None:
        if origin is ChangeOrigin.REMOTE:
            self._save_locally(snapshot)
            return

        self.status_board.set(SyncState.SAVING)
        saved = self._save_locally(snapshot)

        if self.remote is not None and self.remote.notify_changed():
            return
        if not saved:
            return
        if self.remote is not None and self.remote.error is ErrorKind.UNAUTHORIZED:
            self.status_board.fail(ErrorKind.UNAUTHORIZED)
        else:
            self.status_board.set(SyncState.LOCAL_ONLY)

    def _save_locally(self, snapshot: Snapshot) -> bool:
        try:
            self.local.save(snapshot)
        except LocalPersistenceError as e:
            logger.error(
                "Local save failed, keeping in-memory snapshot",
                extra={"error_code": e.code, "last_updated": snapshot.last_updated},
            )
            self.status_board.fail(ErrorKind.LOCAL_STORAGE)
            return False
        return True
