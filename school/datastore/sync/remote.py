"""
Remote synchronization: startup arbitration, debounced push, force push/pull.

RemoteSync keeps the canonical snapshot in step with a single remote
document. Each call to connect() opens a new connection generation:

    DISABLED --connect(complete credentials)--> CONNECTING --arbitrate--> IDLE
    IDLE --push/force_push--> PUSHING --> IDLE | ERROR(kind)
    IDLE --force_pull--> PULLING --> IDLE | ERROR(kind)
    any --connect(new credentials)--> CONNECTING
    any --disconnect()--> DISABLED

Invariants:
    - Arbitration runs once per connection and never pushes
    - Arbitration and background pushes never raise; failures are logged
    - force_push()/force_pull() raise RemoteDisabledError before doing any
      I/O when no credentials are configured, and re-raise remote failures
    - A push reads the snapshot when it is sent, not when it was scheduled
    - Results of calls made under a superseded generation are discarded
    - In-flight remote calls are never cancelled; a retired connection is
      closed once its calls have finished

How to change safely:
    - Never replace the snapshot except through StateStore.replace()
    - Keep status transitions in this module and in the service only
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Set, TypeVar

from ..errors import RemoteDisabledError, RemoteSyncError, RemoteUnauthorizedError
from ..models import RemoteCredentials, Snapshot
from ..state import ChangeOrigin, StateStore
from .arbitration import ArbitrationOutcome, should_adopt_remote
from .base import DEFAULT_DOCUMENT_ID, RemoteDocumentStore
from .scheduler import CoalescingScheduler
from .status import ErrorKind, StatusBoard, SyncState

logger = logging.getLogger(__name__)

DEFAULT_PUSH_DEBOUNCE_SECONDS = 2.0

StoreFactory = Callable[[RemoteCredentials], RemoteDocumentStore]
T = TypeVar("T")


class RemoteState(Enum):
    """Connection states of RemoteSync."""

    DISABLED = "disabled"
    CONNECTING = "connecting"
    IDLE = "idle"
    PULLING = "pulling"
    PUSHING = "pushing"
    ERROR = "error"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Connection:
    """One credentials generation: its store, push scheduler and in-flight calls."""

    generation: int
    credentials: RemoteCredentials
    store: RemoteDocumentStore
    scheduler: Optional[CoalescingScheduler] = None
    calls: Set[asyncio.Task] = field(default_factory=set)

    async def call(self, make: Callable[[], Awaitable[T]]) -> T:
        task = asyncio.ensure_future(make())
        self.calls.add(task)
        task.add_done_callback(self.calls.discard)
        # Cancelling the caller must not cancel the request itself.
        return await asyncio.shield(task)

    async def retire(self) -> None:
        if self.scheduler is not None:
            self.scheduler.cancel()
        while self.calls:
            await asyncio.gather(*list(self.calls), return_exceptions=True)
        if self.scheduler is not None:
            await self.scheduler.wait_idle()
        try:
            await self.store.close()
        except Exception:
            logger.warning("Failed to close remote store", exc_info=True)


class RemoteSync:
    """Arbitration and push/pull against one remote document.

    Attributes:
        document_id: Fixed identifier of the remote row
        debounce_seconds: Quiet period before a background push

    Example:
        >>> sync = RemoteSync(store, board, PostgrestDocumentStore)
        >>> await sync.connect(RemoteCredentials("https://x.supabase.co", "anon"))
        >>> sync.notify_changed()      # debounced push
        >>> await sync.force_push()    # immediate push
    """

    def __init__(
        self,
        state_store: StateStore,
        status: StatusBoard,
        store_factory: StoreFactory,
        document_id: Any = DEFAULT_DOCUMENT_ID,
        debounce_seconds: float = DEFAULT_PUSH_DEBOUNCE_SECONDS,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._state_store = state_store
        self._status = status
        self._store_factory = store_factory
        self.document_id = document_id
        self.debounce_seconds = debounce_seconds
        self._now = now

        self._state = RemoteState.DISABLED
        self._error: Optional[ErrorKind] = None
        self._generation = 0
        self._connection: Optional[_Connection] = None
        self._retiring: Set[asyncio.Task] = set()
        self.push_count = 0

    @property
    def state(self) -> RemoteState:
        return self._state

    @property
    def error(self) -> Optional[ErrorKind]:
        """Error kind while state is ERROR."""
        return self._error if self._state is RemoteState.ERROR else None

    @property
    def enabled(self) -> bool:
        """True while complete credentials are connected."""
        return self._connection is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def credentials(self) -> RemoteCredentials:
        if self._connection is None:
            return RemoteCredentials()
        return self._connection.credentials

    @property
    def push_pending(self) -> bool:
        conn = self._connection
        return conn is not None and conn.scheduler is not None and conn.scheduler.pending

    async def connect(self, credentials: RemoteCredentials) -> ArbitrationOutcome:
        """Open a connection for the given credentials and arbitrate once.

        Any previous connection is retired first. Incomplete credentials
        leave sync disabled.

        Returns:
            Outcome of the startup arbitration
        """
        self._retire_connection()
        self._generation += 1

        if not credentials.is_complete:
            self._set_state(RemoteState.DISABLED)
            logger.info("Remote sync disabled: no credentials configured")
            return ArbitrationOutcome.DISABLED

        try:
            store = self._store_factory(credentials)
        except Exception as e:
            logger.error(
                "Could not open remote store, keeping local snapshot",
                extra={"generation": self._generation, "error": str(e)},
                exc_info=not isinstance(e, RemoteSyncError),
            )
            self._fail(ErrorKind.NETWORK_OR_SERVER)
            return ArbitrationOutcome.FAILED

        conn = _Connection(
            generation=self._generation,
            credentials=credentials,
            store=store,
        )
        conn.scheduler = CoalescingScheduler(
            lambda: self._push_latest(conn),
            delay_seconds=self.debounce_seconds,
            name="remote-push",
        )
        self._connection = conn
        self._set_state(RemoteState.CONNECTING)
        logger.info(
            "Connecting remote sync",
            extra={"generation": conn.generation, "endpoint": credentials.endpoint},
        )
        return await self.arbitrate(conn)

    async def disconnect(self) -> None:
        """Disable sync and drop any pending debounced push."""
        if self._connection is None:
            return
        self._retire_connection()
        self._generation += 1
        self._set_state(RemoteState.DISABLED)
        logger.info("Remote sync disconnected")

    async def close(self) -> None:
        """Disconnect and wait for retired connections to finish."""
        await self.disconnect()
        while self._retiring:
            await asyncio.gather(*list(self._retiring), return_exceptions=True)

    async def arbitrate(self, conn: Optional[_Connection] = None) -> ArbitrationOutcome:
        """Run the startup arbitration for a connection.

        Never raises. The snapshot is replaced only when the remote copy
        wins and the connection is still current.
        """
        conn = conn or self._connection
        if conn is None:
            return ArbitrationOutcome.DISABLED

        try:
            document = await conn.call(lambda: conn.store.select(self.document_id))
        except RemoteUnauthorizedError as e:
            if not self._is_current(conn):
                return ArbitrationOutcome.SUPERSEDED
            logger.error(
                "Remote rejected credentials during arbitration",
                extra={"generation": conn.generation, "status_code": e.status_code},
            )
            self._fail(ErrorKind.UNAUTHORIZED)
            return ArbitrationOutcome.UNAUTHORIZED
        except Exception:
            if not self._is_current(conn):
                return ArbitrationOutcome.SUPERSEDED
            logger.error(
                "Arbitration failed, keeping local snapshot",
                extra={"generation": conn.generation},
                exc_info=True,
            )
            self._set_state(RemoteState.IDLE)
            return ArbitrationOutcome.FAILED

        if not self._is_current(conn):
            logger.info(
                "Discarding arbitration result from superseded connection",
                extra={"generation": conn.generation, "current": self._generation},
            )
            return ArbitrationOutcome.SUPERSEDED

        self._set_state(RemoteState.IDLE)

        if document is None:
            logger.info("No remote snapshot found, keeping local")
            self._status.set(SyncState.LOCAL_ONLY)
            return ArbitrationOutcome.NOT_FOUND

        local_ts = self._state_store.current().last_updated
        remote_ts = document.last_updated
        if should_adopt_remote(local_ts, remote_ts):
            self._state_store.replace(document.content, origin=ChangeOrigin.REMOTE, stamp=False)
            self._status.set(SyncState.SYNCED_FROM_REMOTE)
            logger.info(
                "Adopted remote snapshot",
                extra={"local_ts": local_ts, "remote_ts": remote_ts},
            )
            return ArbitrationOutcome.ADOPTED_REMOTE

        logger.info(
            "Kept local snapshot",
            extra={"local_ts": local_ts, "remote_ts": remote_ts},
        )
        self._status.set(SyncState.LOCAL_ONLY)
        return ArbitrationOutcome.KEPT_LOCAL

    def notify_changed(self) -> bool:
        """(Re)schedule the debounced push after a local change.

        Returns:
            True if a push was scheduled
        """
        conn = self._connection
        if conn is None or conn.scheduler is None:
            return False
        if self._state is RemoteState.ERROR and self._error is ErrorKind.UNAUTHORIZED:
            logger.debug("Skipping push: credentials rejected")
            return False
        conn.scheduler.schedule()
        return True

    async def flush(self) -> None:
        """Send a pending debounced push now."""
        conn = self._connection
        if conn is not None and conn.scheduler is not None:
            await conn.scheduler.flush()

    async def wait_idle(self) -> None:
        """Wait for in-flight pushes of the current connection."""
        conn = self._connection
        if conn is not None and conn.scheduler is not None:
            await conn.scheduler.wait_idle()

    async def force_push(self) -> None:
        """Push the current snapshot immediately.

        Raises:
            RemoteDisabledError: If no credentials are configured
            RemoteSyncError: If the push failed
        """
        conn = self._require_connection()
        if conn.scheduler is not None:
            conn.scheduler.cancel()
        self._status.set(SyncState.PUSHING)
        try:
            await self._upsert(conn)
        except RemoteSyncError as e:
            if self._is_current(conn):
                self._fail(self._error_kind(e, ErrorKind.PUSH_FAILED))
            raise
        if self._is_current(conn):
            self._set_state(RemoteState.IDLE)
            self._status.set(SyncState.SYNCED_REMOTE)

    async def _push_latest(self, conn: _Connection) -> None:
        if not self._is_current(conn):
            return
        try:
            await self._upsert(conn)
        except Exception as e:
            if self._is_current(conn):
                logger.error(
                    "Background push failed",
                    extra={"generation": conn.generation, "error": str(e)},
                    exc_info=not isinstance(e, RemoteSyncError),
                )
                self._fail(self._error_kind(e, ErrorKind.NETWORK_OR_SERVER))
            return
        if self._is_current(conn):
            self._set_state(RemoteState.IDLE)
            self._status.set(SyncState.SYNCED_REMOTE)

    async def _upsert(self, conn: _Connection) -> None:
        snapshot = self._state_store.current()
        self._set_state(RemoteState.PUSHING)
        await conn.call(
            lambda: conn.store.upsert(self.document_id, snapshot.to_document(), self._now())
        )
        self.push_count += 1
        logger.info(
            "Pushed snapshot",
            extra={"generation": conn.generation, "last_updated": snapshot.last_updated},
        )

    async def force_pull(self) -> Optional[Snapshot]:
        """Replace the local snapshot with the remote one, no timestamp check.

        Returns:
            The installed snapshot, or None if no remote document exists

        Raises:
            RemoteDisabledError: If no credentials are configured
            RemoteSyncError: If the pull failed
        """
        conn = self._require_connection()
        if conn.scheduler is not None:
            conn.scheduler.cancel()
        self._set_state(RemoteState.PULLING)
        self._status.set(SyncState.PULLING)
        try:
            document = await conn.call(lambda: conn.store.select(self.document_id))
        except RemoteSyncError as e:
            if self._is_current(conn):
                self._fail(self._error_kind(e, ErrorKind.PULL_FAILED))
            raise

        if not self._is_current(conn):
            logger.info("Discarding pull result from superseded connection")
            return None

        self._set_state(RemoteState.IDLE)
        if document is None:
            logger.info("Force pull found no remote snapshot")
            self._status.set(SyncState.LOCAL_ONLY)
            return None

        installed = self._state_store.replace(
            document.content, origin=ChangeOrigin.REMOTE, stamp=False
        )
        self._status.set(SyncState.PULLED)
        return installed

    def _require_connection(self) -> _Connection:
        if self._connection is None:
            raise RemoteDisabledError()
        return self._connection

    def _is_current(self, conn: _Connection) -> bool:
        return self._connection is conn and conn.generation == self._generation

    def _retire_connection(self) -> None:
        conn = self._connection
        self._connection = None
        if conn is None:
            return
        if conn.scheduler is not None:
            conn.scheduler.cancel()
        task = asyncio.ensure_future(conn.retire())
        self._retiring.add(task)
        task.add_done_callback(self._retiring.discard)

    def _set_state(self, state: RemoteState) -> None:
        if state is not RemoteState.ERROR:
            self._error = None
        if state is not self._state:
            logger.debug(
                "Remote state changed",
                extra={"from_state": self._state.value, "to_state": state.value},
            )
        self._state = state

    def _fail(self, kind: ErrorKind) -> None:
        self._state = RemoteState.ERROR
        self._error = kind
        self._status.fail(kind)

    @staticmethod
    def _error_kind(error: Exception, fallback: ErrorKind) -> ErrorKind:
        if isinstance(error, RemoteUnauthorizedError):
            return ErrorKind.UNAUTHORIZED
        return fallback
