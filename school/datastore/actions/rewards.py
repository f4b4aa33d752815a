"""
Reward (favocoin) actions and the store.

A collective purchase splits the item price evenly between the buyers and
takes one unit of stock.
"""

from __future__ import annotations

from typing import Any, Iterable

from ..models import Snapshot
from ..state import Updater
from .dispatcher import ActionContext
from .records import find_record

ENTRY_TYPES = ("EARN", "SPEND", "PENALTY")


def add_reward_entry(
    ctx: ActionContext,
    student_id: str,
    amount: float,
    description: str,
    entry_type: str,
) -> Updater:
    """Record a manual reward, spend or penalty for a student."""
    if entry_type not in ENTRY_TYPES:
        raise ValueError(f"entry_type must be one of {ENTRY_TYPES}, got {entry_type!r}")
    entry = {
        "id": ctx.new_id("ft"),
        "studentId": student_id,
        "amount": amount,
        "description": description,
        "type": entry_type,
        "date": ctx.today_iso,
    }

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection(
            "favocoinTransactions", [*snapshot.favocoin_transactions, dict(entry)]
        )

    return updater


def purchase_store_item(ctx: ActionContext, student_ids: Iterable[str], item_id: str) -> Updater:
    """Buy one unit of a store item, alone or split between several students.

    Out-of-stock items and empty buyer lists leave the snapshot unchanged.
    """
    buyers = list(student_ids)
    purchase_id = ctx.new_id("ft-buy")
    day = ctx.today_iso

    def updater(snapshot: Snapshot) -> Snapshot:
        item = find_record(snapshot.store_items, item_id)
        if item is None or not buyers or item.get("stock", 0) < 1:
            return snapshot

        share = item.get("price", 0) / len(buyers)
        suffix = " (Coletiva)" if len(buyers) > 1 else ""
        entries = [
            {
                "id": f"{purchase_id}-{sid}",
                "studentId": sid,
                "amount": -share,
                "description": f"Compra: {item.get('name')}{suffix}",
                "type": "SPEND",
                "date": day,
            }
            for sid in buyers
        ]
        return snapshot.with_collections(
            storeItems=[
                {**i, "stock": i.get("stock", 0) - 1} if i.get("id") == item_id else i
                for i in snapshot.store_items
            ],
            favocoinTransactions=[*snapshot.favocoin_transactions, *entries],
        )

    return updater


def reward_balance(snapshot: Snapshot, student_id: Any) -> float:
    """Sum of a student's reward entries."""
    return sum(
        t.get("amount", 0) for t in snapshot.favocoin_transactions
        if t.get("studentId") == student_id
    )
