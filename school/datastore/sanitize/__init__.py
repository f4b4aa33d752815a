"""
Sanitizer/Migrator module.

This module is the single typed boundary between untrusted documents and
the Snapshot type:
- sanitize(): normalize any JSON into a well-formed Snapshot
- build_default_snapshot(): the built-in defaults used as fallback

Invariants:
    - sanitize() never raises
    - sanitize() is idempotent
    - Reserved accounts exist exactly once after sanitization
"""

from .sanitizer import (
    DEFAULT_PASSWORD,
    RESERVED_ACCOUNTS,
    ROLE_ADMIN,
    ROLE_PARENT,
    ROLE_TEACHER,
    ReservedAccount,
    coerce_timestamp,
    sanitize,
)
from .seed import INITIAL_REWARD_BALANCE, build_default_snapshot, shift_schedule

__all__ = [
    "sanitize",
    "coerce_timestamp",
    "build_default_snapshot",
    "shift_schedule",
    "ReservedAccount",
    "RESERVED_ACCOUNTS",
    "DEFAULT_PASSWORD",
    "INITIAL_REWARD_BALANCE",
    "ROLE_ADMIN",
    "ROLE_TEACHER",
    "ROLE_PARENT",
]
