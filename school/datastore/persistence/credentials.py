"""
Durable storage of the remote credentials.

Credentials are kept under their own key, independent of the snapshot, so
clearing or corrupting the cache never loses the sync configuration.
"""

from __future__ import annotations

import json
import logging

from ..errors import LocalPersistenceError
from ..models.credentials import RemoteCredentials
from .base import DurableStore

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_KEY = "remote-config"


class CredentialStore:
    """Loads and saves RemoteCredentials in a durable store."""

    def __init__(self, store: DurableStore, key: str = DEFAULT_CREDENTIALS_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> RemoteCredentials:
        """Read stored credentials; missing or corrupt data yields empty credentials."""
        raw = self.store.get(self.key)
        if not raw:
            return RemoteCredentials()
        try:
            return RemoteCredentials.from_dict(json.loads(raw))
        except json.JSONDecodeError:
            logger.warning("Stored remote credentials are corrupt, ignoring them")
            return RemoteCredentials()

    def save(self, credentials: RemoteCredentials) -> None:
        """Persist credentials immediately.

        Raises:
            LocalPersistenceError: If the durable store refused the write
        """
        try:
            self.store.set(self.key, json.dumps(credentials.to_dict()))
        except LocalPersistenceError:
            logger.error("Remote credentials write refused", extra={"key": self.key})
            raise
        except Exception as e:
            logger.error(f"Remote credentials write failed: {e}", exc_info=True)
            raise LocalPersistenceError(f"Remote credentials write failed: {e}", key=self.key) from e
        logger.info("Remote credentials saved", extra=credentials.redacted())
