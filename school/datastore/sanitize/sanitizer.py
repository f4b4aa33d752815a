"""
Sanitizer/Migrator for untrusted snapshot documents.

Every boundary where a document of unknown shape can enter the store
(local cache load, remote pull, explicit import) goes through
:func:`sanitize`. It converts the document into a well-formed Snapshot:

1. Each named collection that is not a list of records is replaced by the
   default collection
2. Login-capable identities without a password get DEFAULT_PASSWORD and
   must change it on next login
3. Reserved accounts are appended to ``users`` if no record matches their
   email (case-insensitive)
4. A missing, zero or malformed lastUpdated becomes 0 ("no real data")

Invariants:
    - sanitize() never raises; anomalies degrade to defaults per field
    - sanitize(sanitize(x, d), d) == sanitize(x, d)
    - Reserved accounts are never duplicated
    - The input document is never mutated

How to change safely:
    - New migrations must be idempotent (re-running them is a no-op)
    - Never drop a record the user created; only fill missing fields
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..models.snapshot import (
    COLLECTION_WIRE_NAMES,
    IDENTITY_COLLECTIONS,
    LAST_UPDATED_KEY,
    PENALTY_CONFIG_KEY,
    RESERVED_DOCUMENT_KEYS,
    Record,
    Snapshot,
    UntrustedDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "123456"

ROLE_ADMIN = "ADMIN"
ROLE_TEACHER = "TEACHER"
ROLE_PARENT = "PARENT"


@dataclass(frozen=True)
class ReservedAccount:
    """An administrator identity that must always exist.

    Attributes:
        account_id: Record id used when the account is created
        name: Display name
        email: Login email (matched case-insensitively)
    """

    account_id: str
    name: str
    email: str

    def to_record(self) -> Record:
        return {
            "id": self.account_id,
            "name": self.name,
            "role": ROLE_ADMIN,
            "email": self.email,
            "password": DEFAULT_PASSWORD,
            "needsPasswordChange": True,
        }


RESERVED_ACCOUNTS: tuple[ReservedAccount, ...] = (
    ReservedAccount("admin-1", "Admin", "admin@school.com"),
    ReservedAccount("admin-rosila", "Rosila", "rosila@cedmisv.com.br"),
    ReservedAccount("admin-marcia", "Márcia", "marcia@cedmisv.com.br"),
)


def sanitize(
    candidate: UntrustedDocument,
    defaults: Snapshot,
    reserved_accounts: Iterable[ReservedAccount] = RESERVED_ACCOUNTS,
) -> Snapshot:
    """Convert an untrusted document into a well-formed Snapshot.

    Args:
        candidate: Parsed JSON of unknown shape (or a Snapshot)
        defaults: Snapshot supplying fallback collections
        reserved_accounts: Accounts guaranteed to exist in ``users``

    Returns:
        A Snapshot with every named collection present
    """
    try:
        return _sanitize(candidate, defaults, tuple(reserved_accounts))
    except Exception:
        # Only non-JSON inputs get here, e.g. mappings whose accessors raise.
        logger.error("Sanitizer failed, falling back to defaults", exc_info=True)
        return _sanitize(None, defaults, tuple(reserved_accounts))


def _sanitize(
    candidate: UntrustedDocument,
    defaults: Snapshot,
    reserved_accounts: tuple[ReservedAccount, ...],
) -> Snapshot:
    if isinstance(candidate, Snapshot):
        candidate = candidate.to_document()
    if not isinstance(candidate, Mapping):
        if candidate is not None:
            logger.debug(
                "Snapshot document is not an object, using defaults",
                extra={"shape": type(candidate).__name__},
            )
        candidate = {}

    default_doc = defaults.to_document()
    document: dict[str, Any] = {}

    # Unknown keys pass through untouched
    for key, value in candidate.items():
        if isinstance(key, str) and key not in RESERVED_DOCUMENT_KEYS:
            document[key] = value

    for name in COLLECTION_WIRE_NAMES:
        document[name] = _collection_or_default(name, candidate.get(name), default_doc[name])

    for name in IDENTITY_COLLECTIONS:
        document[name] = [_migrate_identity(record) for record in document[name]]

    document["users"] = _ensure_reserved_accounts(document["users"], reserved_accounts)

    penalty = candidate.get(PENALTY_CONFIG_KEY)
    if isinstance(penalty, Mapping) and penalty:
        document[PENALTY_CONFIG_KEY] = dict(penalty)
    else:
        _log_defaulted(PENALTY_CONFIG_KEY, penalty)
        document[PENALTY_CONFIG_KEY] = default_doc[PENALTY_CONFIG_KEY]

    document[LAST_UPDATED_KEY] = coerce_timestamp(candidate.get(LAST_UPDATED_KEY))

    return Snapshot.from_trusted(document)


def _collection_or_default(name: str, value: Any, default: list[Record]) -> list[Record]:
    """Return the candidate collection if it is a list of records."""
    if isinstance(value, (list, tuple)) and all(isinstance(r, Mapping) for r in value):
        return [dict(r) for r in value]
    _log_defaulted(name, value)
    return default


def _log_defaulted(name: str, value: Any) -> None:
    if value is not None:
        logger.debug(
            "Malformed snapshot field replaced by default",
            extra={"field": name, "shape": type(value).__name__},
        )


def _migrate_identity(record: Record) -> Record:
    """Fill in password fields for a login-capable identity."""
    migrated = dict(record)
    if not migrated.get("password"):
        migrated["password"] = DEFAULT_PASSWORD
        migrated["needsPasswordChange"] = True
    elif "needsPasswordChange" not in migrated or migrated["needsPasswordChange"] is None:
        migrated["needsPasswordChange"] = True
    return migrated


def _normalized_email(record: Mapping[str, Any]) -> str:
    email = record.get("email")
    return email.strip().lower() if isinstance(email, str) else ""


def _ensure_reserved_accounts(
    users: list[Record],
    reserved_accounts: tuple[ReservedAccount, ...],
) -> list[Record]:
    """Append reserved accounts that no existing user matches."""
    users = list(users)
    known = {_normalized_email(u) for u in users}
    for account in reserved_accounts:
        email = account.email.strip().lower()
        if email in known:
            continue
        users.append(account.to_record())
        known.add(email)
        logger.debug("Reserved account created", extra={"account_id": account.account_id})
    return users


def coerce_timestamp(value: Any) -> int:
    """Interpret lastUpdated; anything unusable means "no real data"."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value > 0 else 0
    if isinstance(value, float) and value == value and value not in (float("inf"), float("-inf")):
        return int(value) if value > 0 else 0
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return 0
        return parsed if parsed > 0 else 0
    return 0
