"""Account actions: password changes and login lookup."""

from __future__ import annotations

from typing import Optional

from ..models import Record, Snapshot
from ..state import Updater


def change_password(user_id: str, new_password: str) -> Updater:
    """Set a new password and clear the forced-change flag.

    The same identity can appear in users, teachers and parents; all copies
    are updated.
    """
    if not new_password:
        raise ValueError("new_password must not be empty")

    def changed(records):
        return [
            {**r, "password": new_password, "needsPasswordChange": False}
            if r.get("id") == user_id else r
            for r in records
        ]

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collections(
            users=changed(snapshot.users),
            teachers=changed(snapshot.teachers),
            parents=changed(snapshot.parents),
        )

    return updater


def find_user_by_email(snapshot: Snapshot, email: str) -> Optional[Record]:
    """Look up a login by email, case-insensitively."""
    wanted = email.strip().lower()
    for user in snapshot.users:
        if str(user.get("email", "")).strip().lower() == wanted:
            return user
    return None
