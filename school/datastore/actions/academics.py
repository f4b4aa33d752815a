"""
Academic actions: attendance and grades.

Saving attendance for an eligible class (1st to 5th year) also records the
automatic reward for presence or penalty for absence. Automatic entries use
ids derived from student and date, so saving the same day again replaces
them instead of adding more.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..models import Snapshot
from ..state import Updater
from .records import find_record

REWARD_ELIGIBLE_YEARS = ("1º ANO", "2º ANO", "3º ANO", "4º ANO", "5º ANO")
ATTENDANCE_REWARD = 10
ABSENCE_PENALTY = 5


def is_reward_eligible(school_class: Mapping[str, Any] | None) -> bool:
    if not school_class:
        return False
    name = str(school_class.get("name", "")).upper()
    return any(year in name for year in REWARD_ELIGIBLE_YEARS)


def _attendance_entry_ids(student_id: str, day: str) -> tuple[str, str]:
    return f"ft-att-{student_id}-{day}", f"ft-att-miss-{student_id}-{day}"


def save_attendance(class_id: str, day: str, records: Iterable[Mapping[str, Any]]) -> Updater:
    """Record presence for a class on one day.

    Args:
        class_id: Class the attendance was taken for
        day: ISO date
        records: ``{"studentId": ..., "present": bool}`` per student
    """
    entries = [
        {"studentId": r["studentId"], "present": bool(r.get("present")), "date": day}
        for r in records
    ]
    student_ids = {e["studentId"] for e in entries}

    def updater(snapshot: Snapshot) -> Snapshot:
        attendance = [
            a for a in snapshot.attendance
            if not (a.get("date") == day and a.get("studentId") in student_ids)
        ]
        attendance.extend(dict(e) for e in entries)

        rewards = list(snapshot.favocoin_transactions)
        if is_reward_eligible(find_record(snapshot.classes, class_id)):
            automatic = {i for e in entries for i in _attendance_entry_ids(e["studentId"], day)}
            rewards = [t for t in rewards if t.get("id") not in automatic]
            for e in entries:
                earned_id, missed_id = _attendance_entry_ids(e["studentId"], day)
                if e["present"]:
                    rewards.append({
                        "id": earned_id, "studentId": e["studentId"], "amount": ATTENDANCE_REWARD,
                        "description": "Presença Confirmada", "type": "EARN", "date": day,
                    })
                else:
                    rewards.append({
                        "id": missed_id, "studentId": e["studentId"], "amount": -ABSENCE_PENALTY,
                        "description": "Falta", "type": "PENALTY", "date": day,
                    })

        return snapshot.with_collections(attendance=attendance, favocoinTransactions=rewards)

    return updater


def save_grades(subject_id: str, day: str, records: Iterable[Mapping[str, Any]]) -> Updater:
    """Record grades for one subject on one day, replacing earlier entries."""
    new_grades = [
        {"studentId": r["studentId"], "grade": r["grade"], "subjectId": subject_id, "date": day}
        for r in records
    ]
    student_ids = {g["studentId"] for g in new_grades}

    def updater(snapshot: Snapshot) -> Snapshot:
        kept = [
            g for g in snapshot.grades
            if not (
                g.get("date") == day
                and g.get("subjectId") == subject_id
                and g.get("studentId") in student_ids
            )
        ]
        return snapshot.with_collection("grades", [*kept, *(dict(g) for g in new_grades)])

    return updater


def import_grades(grades: Iterable[Mapping[str, Any]]) -> Updater:
    """Merge imported grades; an import replaces grades with the same student, subject and date."""
    imported = [dict(g) for g in grades]
    keys = {(g.get("studentId"), g.get("subjectId"), g.get("date")) for g in imported}

    def updater(snapshot: Snapshot) -> Snapshot:
        kept = [
            g for g in snapshot.grades
            if (g.get("studentId"), g.get("subjectId"), g.get("date")) not in keys
        ]
        return snapshot.with_collection("grades", [*kept, *(dict(g) for g in imported)])

    return updater
