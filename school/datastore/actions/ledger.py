"""
Ledger actions: transactions, payments and tuition billing.

Tuition generation is idempotent per period: a student who already has an
income entry for ``month/year`` (batch) or for the exact description
(booklet) is skipped.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..models import Record, Snapshot
from ..state import Updater
from .dispatcher import ActionContext
from .records import add_record, find_record

INCOME = "INCOME"
EXPENSE = "EXPENSE"
PENDING = "PENDING"
PAID = "PAID"
TUITION_CATEGORY = "Mensalidade"
BOOKLET_DUE_DAY = 10


def add_transaction(ctx: ActionContext, transaction: Mapping[str, Any]) -> Updater:
    return add_record(ctx, "transactions", "trans", transaction)


def mark_as_paid(transaction_id: str, paid_date: str, method: str) -> Updater:
    """Settle a transaction."""

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection(
            "transactions",
            [
                {**t, "status": PAID, "paidDate": paid_date, "paymentMethod": method}
                if t.get("id") == transaction_id else t
                for t in snapshot.transactions
            ],
        )

    return updater


def _revenue_cost_center(snapshot: Snapshot) -> Optional[str]:
    for cc in snapshot.cost_centers:
        if "Receita" in str(cc.get("name", "")):
            return cc.get("id")
    return None


def _has_income(snapshot: Snapshot, student_id: Any, predicate) -> bool:
    return any(
        t.get("studentId") == student_id
        and t.get("type") == INCOME
        and predicate(str(t.get("description", "")))
        for t in snapshot.transactions
    )


def _tuition_entry(
    entry_id: str,
    description: str,
    amount: Any,
    created: str,
    due_date: str,
    student_id: Any,
    cost_center: Optional[str],
) -> Record:
    entry = {
        "id": entry_id,
        "description": description,
        "amount": amount,
        "type": INCOME,
        "date": created,
        "dueDate": due_date,
        "category": TUITION_CATEGORY,
        "studentId": student_id,
        "status": PENDING,
    }
    if cost_center:
        entry["costCenterId"] = cost_center
    return entry


def generate_tuition_batch(
    ctx: ActionContext,
    month: int,
    year: int,
    due_date: str,
    service_id: str,
) -> Updater:
    """Bill one month of tuition to every student not yet billed for it."""
    batch_id = ctx.new_id("trans-tuition")
    created = ctx.today_iso
    period = f"{month}/{year}"

    def updater(snapshot: Snapshot) -> Snapshot:
        service = find_record(snapshot.financial_services, service_id)
        amount = service.get("value", 0) if service else 0
        label = f"{service.get('name') if service else TUITION_CATEGORY} - {period}"
        cost_center = _revenue_cost_center(snapshot)

        new_entries = [
            _tuition_entry(
                f"{batch_id}-{s.get('id')}",
                f"{label} - {s.get('name')}",
                amount,
                created,
                due_date,
                s.get("id"),
                cost_center,
            )
            for s in snapshot.students
            if not _has_income(snapshot, s.get("id"), lambda d: f" - {period}" in d)
        ]
        return snapshot.with_collection("transactions", [*snapshot.transactions, *new_entries])

    return updater


def generate_student_carne(ctx: ActionContext, student_id: str, service_id: str, year: int) -> Updater:
    """Issue a payment booklet: one entry per remaining month of the year.

    For the current year billing starts at the current month, otherwise in
    January. Each month is due on the 10th.
    """
    batch_id = ctx.new_id("trans-carne")
    created = ctx.today_iso
    start_month = ctx.today.month if year == ctx.today.year else 1

    def updater(snapshot: Snapshot) -> Snapshot:
        student = find_record(snapshot.students, student_id)
        service = find_record(snapshot.financial_services, service_id)
        if student is None or service is None:
            return snapshot

        cost_center = _revenue_cost_center(snapshot)
        new_entries = []
        for month in range(start_month, 13):
            description = f"{service.get('name')} - {month}/{year}"
            if _has_income(snapshot, student_id, lambda d: d == description):
                continue
            entry = _tuition_entry(
                f"{batch_id}-{year}-{month}",
                description,
                service.get("value", 0),
                created,
                f"{year}-{month:02d}-{BOOKLET_DUE_DAY:02d}",
                student_id,
                cost_center,
            )
            entry["recurrence"] = True
            new_entries.append(entry)
        return snapshot.with_collection("transactions", [*snapshot.transactions, *new_entries])

    return updater
