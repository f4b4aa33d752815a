"""
Enrollment actions: students, teachers and classes.

Adding a student also creates the parent login, the welcome reward balance
and the class membership. Deleting one cascades to attendance, grades,
reward entries and class memberships; the parent is removed only when no
sibling remains.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..models import Snapshot
from ..sanitize import DEFAULT_PASSWORD, INITIAL_REWARD_BALANCE, ROLE_PARENT, ROLE_TEACHER, shift_schedule
from ..state import Updater
from .dispatcher import ActionContext
from .records import find_record

STUDENT_FIELDS = (
    "enrollmentId", "birthDate", "cpf", "email", "phone",
    "address", "cityOfBirth", "photoUrl",
)
PARENT_FIELDS = ("phone", "birthDate")


def add_student(
    ctx: ActionContext,
    student: Mapping[str, Any],
    parent: Mapping[str, Any],
) -> Updater:
    """Enroll a student together with their parent login.

    Args:
        ctx: Supplies the new ids and the enrollment day
        student: Student fields (name, classId, ...)
        parent: Parent fields (name, email, phone, birthDate)
    """
    student_id = ctx.new_id("stu")
    parent_id = ctx.new_id("parent")
    class_id = student.get("classId") or ""

    new_student = {
        "id": student_id,
        "name": student.get("name") or "Nome Desconhecido",
        "classId": class_id,
        "parentId": parent_id,
        "status": student.get("status") or "ativo",
    }
    new_student.update({k: student[k] for k in STUDENT_FIELDS if student.get(k) is not None})

    new_parent = {
        "id": parent_id,
        "name": parent.get("name") or "Responsável",
        "email": parent.get("email") or "",
        "role": ROLE_PARENT,
        "studentId": student_id,
        "password": DEFAULT_PASSWORD,
        "needsPasswordChange": True,
    }
    new_parent.update({k: parent[k] for k in PARENT_FIELDS if parent.get(k) is not None})

    welcome = {
        "id": f"ft-init-{student_id}",
        "studentId": student_id,
        "amount": INITIAL_REWARD_BALANCE,
        "description": "Saldo Inicial (Boas-vindas)",
        "type": "EARN",
        "date": ctx.today_iso,
    }

    def updater(snapshot: Snapshot) -> Snapshot:
        classes = [
            {**c, "studentIds": [*c.get("studentIds", []), student_id]}
            if class_id and c.get("id") == class_id else c
            for c in snapshot.classes
        ]
        return snapshot.with_collections(
            students=[*snapshot.students, dict(new_student)],
            parents=[*snapshot.parents, dict(new_parent)],
            users=[*snapshot.users, dict(new_parent)],
            classes=classes,
            favocoinTransactions=[*snapshot.favocoin_transactions, dict(welcome)],
        )

    return updater


def update_student(
    student_id: str,
    student_changes: Mapping[str, Any],
    parent_changes: Optional[Mapping[str, Any]] = None,
) -> Updater:
    """Edit a student and their parent; moves class membership if classId changed."""
    student_changes = {k: v for k, v in student_changes.items() if k != "id"}
    parent_changes = {k: v for k, v in (parent_changes or {}).items() if k != "id"}

    def updater(snapshot: Snapshot) -> Snapshot:
        current = find_record(snapshot.students, student_id)
        if current is None:
            return snapshot

        students = [
            {**s, **student_changes} if s.get("id") == student_id else s
            for s in snapshot.students
        ]

        classes = list(snapshot.classes)
        old_class = current.get("classId")
        new_class = student_changes.get("classId")
        if new_class and new_class != old_class:
            classes = [_move_member(c, student_id, old_class, new_class) for c in classes]

        parent_id = current.get("parentId")
        parents = [
            {**p, **parent_changes} if p.get("id") == parent_id else p
            for p in snapshot.parents
        ]
        users = [
            {
                **u,
                "name": parent_changes.get("name") or u.get("name"),
                "email": parent_changes.get("email") or u.get("email"),
            }
            if u.get("id") == parent_id else u
            for u in snapshot.users
        ]
        return snapshot.with_collections(
            students=students, classes=classes, parents=parents, users=users
        )

    return updater


def _move_member(school_class: dict, student_id: str, old_class: Any, new_class: Any) -> dict:
    members = school_class.get("studentIds", [])
    if school_class.get("id") == old_class:
        return {**school_class, "studentIds": [m for m in members if m != student_id]}
    if school_class.get("id") == new_class:
        return {**school_class, "studentIds": [*members, student_id]}
    return school_class


def delete_student(student_id: str) -> Updater:
    """Remove a student and everything that belongs only to them."""

    def updater(snapshot: Snapshot) -> Snapshot:
        current = find_record(snapshot.students, student_id)
        if current is None:
            return snapshot

        parent_id = current.get("parentId")
        has_siblings = any(
            s.get("parentId") == parent_id and s.get("id") != student_id
            for s in snapshot.students
        )
        parents, users = snapshot.parents, snapshot.users
        if not has_siblings:
            parents = [p for p in parents if p.get("id") != parent_id]
            users = [u for u in users if u.get("id") != parent_id]

        return snapshot.with_collections(
            students=[s for s in snapshot.students if s.get("id") != student_id],
            parents=parents,
            users=users,
            classes=[
                {**c, "studentIds": [m for m in c.get("studentIds", []) if m != student_id]}
                if student_id in c.get("studentIds", []) else c
                for c in snapshot.classes
            ],
            attendance=[a for a in snapshot.attendance if a.get("studentId") != student_id],
            grades=[g for g in snapshot.grades if g.get("studentId") != student_id],
            favocoinTransactions=[
                t for t in snapshot.favocoin_transactions if t.get("studentId") != student_id
            ],
        )

    return updater


def migrate_students(student_ids: Iterable[str], target_class_id: str) -> Updater:
    """Move students to a class, removing them from every other class."""
    moving = list(dict.fromkeys(student_ids))
    moving_set = set(moving)

    def updater(snapshot: Snapshot) -> Snapshot:
        students = [
            {**s, "classId": target_class_id} if s.get("id") in moving_set else s
            for s in snapshot.students
        ]
        classes = []
        for c in snapshot.classes:
            members = [m for m in c.get("studentIds", []) if m not in moving_set]
            if c.get("id") == target_class_id:
                members = [*members, *moving]
            classes.append({**c, "studentIds": members})
        return snapshot.with_collections(students=students, classes=classes)

    return updater


def add_teacher(ctx: ActionContext, name: str, email: str, subject_ids: Iterable[str]) -> Updater:
    """Create a teacher with a login that must change the default password."""
    teacher = {
        "id": ctx.new_id("teach"),
        "name": name,
        "email": email,
        "role": ROLE_TEACHER,
        "subjectIds": list(subject_ids),
        "password": DEFAULT_PASSWORD,
        "needsPasswordChange": True,
    }

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collections(
            teachers=[*snapshot.teachers, dict(teacher)],
            users=[*snapshot.users, dict(teacher)],
        )

    return updater


def delete_teacher(teacher_id: str) -> Updater:
    """Remove a teacher, their login and their class assignments."""

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collections(
            teachers=[t for t in snapshot.teachers if t.get("id") != teacher_id],
            users=[u for u in snapshot.users if u.get("id") != teacher_id],
            classes=[
                {**c, "teacherIds": [t for t in c.get("teacherIds", []) if t != teacher_id]}
                if teacher_id in c.get("teacherIds", []) else c
                for c in snapshot.classes
            ],
        )

    return updater


def add_class(
    ctx: ActionContext,
    name: str,
    teacher_ids: Iterable[str],
    subject_ids: Iterable[str],
    shift: Optional[str] = None,
) -> Updater:
    new_class = {
        "id": ctx.new_id("class"),
        "name": name,
        "teacherIds": list(teacher_ids),
        "subjectIds": list(subject_ids),
        "studentIds": [],
    }
    if shift:
        new_class["shift"] = shift
        new_class["schedule"] = shift_schedule(shift)

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collection("classes", [*snapshot.classes, dict(new_class)])

    return updater


def update_class(
    class_id: str,
    name: str,
    teacher_ids: Iterable[str],
    subject_ids: Iterable[str],
    shift: Optional[str] = None,
) -> Updater:
    """Edit a class; the schedule follows the shift when one is given."""
    changes = {"name": name, "teacherIds": list(teacher_ids), "subjectIds": list(subject_ids)}

    def updater(snapshot: Snapshot) -> Snapshot:
        classes = []
        for c in snapshot.classes:
            if c.get("id") == class_id:
                c = {**c, **changes, "shift": shift}
                if shift:
                    c["schedule"] = shift_schedule(shift)
            classes.append(c)
        return snapshot.with_collection("classes", classes)

    return updater


def delete_class(class_id: str) -> Updater:
    """Remove a class; its students stay enrolled without a class."""

    def updater(snapshot: Snapshot) -> Snapshot:
        return snapshot.with_collections(
            classes=[c for c in snapshot.classes if c.get("id") != class_id],
            students=[
                {**s, "classId": ""} if s.get("classId") == class_id else s
                for s in snapshot.students
            ],
        )

    return updater
