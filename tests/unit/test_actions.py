"""
Unit tests for domain actions.

Updaters are pure, so most tests apply them straight to the default
snapshot and inspect the result.

Tests cover:
- ActionContext / ActionDispatcher contract
- Enrollment cascades
- Attendance rewards and their de-duplication
- Tuition batch and payment booklet idempotence
- Store purchases and password changes
"""

from datetime import date

import pytest

from school.datastore.actions import (
    ActionContext,
    ActionDispatcher,
    add_class,
    add_reward_entry,
    add_student,
    add_teacher,
    add_transaction,
    change_password,
    delete_class,
    delete_student,
    delete_teacher,
    find_record,
    find_user_by_email,
    generate_student_carne,
    generate_tuition_batch,
    import_grades,
    mark_as_paid,
    migrate_students,
    purchase_store_item,
    remove_record,
    reward_balance,
    save_attendance,
    save_grades,
    set_penalty_config,
    update_class,
    update_record,
    update_student,
)
from school.datastore.state import StateStore
from tests.conftest import TODAY, FakeClock, SequentialIds, defaults_factory


@pytest.fixture
def new_ids():
    """Context whose ids never collide with the default data."""
    return ActionContext(today=TODAY, id_factory=lambda prefix: f"{prefix}-new")


class TestDispatcher:
    """ActionContext and ActionDispatcher."""

    def test_context_captures_today(self):
        ctx = ActionContext.capture(today=date(2024, 1, 2), id_factory=SequentialIds())

        assert ctx.today_iso == "2024-01-02"
        assert ctx.new_id("x") == "x-1"
        assert ctx.new_id("x") == "x-2"

    def test_random_ids_are_unique(self):
        ctx = ActionContext.capture()

        assert ctx.new_id("stu") != ctx.new_id("stu")
        assert ctx.new_id("stu").startswith("stu-")

    def test_dispatch_applies_and_stamps(self, ctx):
        store = StateStore(defaults_factory(), defaults_factory, clock=FakeClock(now=5000))
        dispatcher = ActionDispatcher(store, context_factory=lambda: ctx)

        installed = dispatcher.dispatch(add_teacher(dispatcher.context(), "Rui", "rui@x.com", []))

        assert installed.last_updated == 5000
        assert store.current() is installed
        assert installed.teachers[-1]["id"] == "teach-1"

    def test_updater_is_deterministic(self, ctx, defaults):
        """Applying the same updater twice to the same snapshot gives the same result."""
        updater = add_student(ctx, {"name": "Ana"}, {"name": "Sr. Lima"})

        assert updater(defaults) == updater(defaults)


class TestRecords:
    def test_update_and_remove(self, defaults):
        updated = update_record("subjects", "subj-1", {"name": "Matemática II", "id": "hijack"})(defaults)

        assert find_record(updated.subjects, "subj-1")["name"] == "Matemática II"
        assert find_record(updated.subjects, "hijack") is None

        removed = remove_record("subjects", "subj-1")(updated)
        assert find_record(removed.subjects, "subj-1") is None

    def test_unknown_id_is_noop(self, defaults):
        assert update_record("subjects", "nope", {"name": "x"})(defaults).subjects == defaults.subjects

    def test_penalty_config(self, defaults):
        updated = set_penalty_config({"interestRate": 2.0, "finePercentage": 1.0, "gracePeriodDays": 0})(defaults)

        assert updated.penalty_config["interestRate"] == 2.0
        assert defaults.penalty_config["interestRate"] == 1.0


class TestEnrollment:
    """Students, teachers and classes."""

    def test_add_student(self, new_ids, defaults):
        updated = add_student(
            new_ids, {"name": "Ana Lima", "classId": "class-2"}, {"name": "Sr. Lima", "email": "lima@x.com"}
        )(defaults)

        student = find_record(updated.students, "stu-new")
        assert student["parentId"] == "parent-new"
        assert student["status"] == "ativo"
        assert "stu-new" in find_record(updated.classes, "class-2")["studentIds"]

        parent = find_record(updated.parents, "parent-new")
        assert parent["needsPasswordChange"] is True
        assert find_record(updated.users, "parent-new")["email"] == "lima@x.com"

        assert reward_balance(updated, "stu-new") == 30

    def test_add_student_defaults(self, new_ids, defaults):
        updated = add_student(new_ids, {}, {})(defaults)

        assert find_record(updated.students, "stu-new")["name"] == "Nome Desconhecido"
        assert find_record(updated.parents, "parent-new")["name"] == "Responsável"

    def test_update_student_moves_class(self, defaults):
        updated = update_student("stu-1", {"classId": "class-2"}, {"email": "novo@x.com"})(defaults)

        assert "stu-1" not in find_record(updated.classes, "class-1")["studentIds"]
        assert "stu-1" in find_record(updated.classes, "class-2")["studentIds"]
        assert find_record(updated.parents, "parent-1")["email"] == "novo@x.com"
        assert find_record(updated.users, "parent-1")["email"] == "novo@x.com"

    def test_delete_student_cascades(self, defaults):
        updated = delete_student("stu-1")(defaults)

        assert find_record(updated.students, "stu-1") is None
        assert find_record(updated.parents, "parent-1") is None
        assert find_record(updated.users, "parent-1") is None
        assert all(a["studentId"] != "stu-1" for a in updated.attendance)
        assert all(g["studentId"] != "stu-1" for g in updated.grades)
        assert reward_balance(updated, "stu-1") == 0
        assert "stu-1" not in find_record(updated.classes, "class-1")["studentIds"]

    def test_delete_student_keeps_parent_with_siblings(self, defaults):
        with_sibling = update_record("students", "stu-2", {"parentId": "parent-1"})(defaults)

        updated = delete_student("stu-1")(with_sibling)

        assert find_record(updated.parents, "parent-1") is not None

    def test_migrate_students(self, defaults):
        updated = migrate_students(["stu-1", "stu-3"], "class-2")(defaults)

        assert find_record(updated.classes, "class-1")["studentIds"] == ["stu-2"]
        assert find_record(updated.classes, "class-2")["studentIds"] == ["stu-1", "stu-3"]
        assert find_record(updated.students, "stu-1")["classId"] == "class-2"

    def test_teacher_lifecycle(self, new_ids, defaults):
        added = add_teacher(new_ids, "Prof. Rui", "rui@x.com", ["subj-1"])(defaults)
        assert find_record(added.users, "teach-new")["role"] == "TEACHER"

        removed = delete_teacher("teach-1")(added)
        assert find_record(removed.teachers, "teach-1") is None
        assert all("teach-1" not in c["teacherIds"] for c in removed.classes)

    def test_class_lifecycle(self, new_ids, defaults):
        added = add_class(new_ids, "Maternal", ["teach-2"], [], shift="Vespertino")(defaults)
        assert find_record(added.classes, "class-new")["schedule"] == "13:00h às 17:30h"

        edited = update_class("class-new", "Maternal I", ["teach-2"], ["subj-2"], shift="Matutino")(added)
        assert find_record(edited.classes, "class-new")["schedule"] == "07:30h às 11:30h"

        removed = delete_class("class-1")(edited)
        assert find_record(removed.classes, "class-1") is None
        assert find_record(removed.students, "stu-1")["classId"] == ""


class TestAcademics:
    """Attendance and grades."""

    DAY = "2025-03-10"

    def test_attendance_rewards(self, defaults):
        updated = save_attendance(
            "class-1", self.DAY, [{"studentId": "stu-1", "present": True}, {"studentId": "stu-2", "present": False}]
        )(defaults)

        day_records = [a for a in updated.attendance if a["date"] == self.DAY]
        assert {(a["studentId"], a["present"]) for a in day_records} == {("stu-1", True), ("stu-2", False)}

        earned = find_record(updated.favocoin_transactions, f"ft-att-stu-1-{self.DAY}")
        missed = find_record(updated.favocoin_transactions, f"ft-att-miss-stu-2-{self.DAY}")
        assert earned["amount"] == 10
        assert missed["amount"] == -5
        assert missed["type"] == "PENALTY"

    def test_resaving_replaces_automatic_entries(self, defaults):
        """Saving the same day twice never stacks rewards or penalties."""
        first = save_attendance("class-1", self.DAY, [{"studentId": "stu-2", "present": False}])(defaults)
        second = save_attendance("class-1", self.DAY, [{"studentId": "stu-2", "present": False}])(first)
        flipped = save_attendance("class-1", self.DAY, [{"studentId": "stu-2", "present": True}])(second)

        assert reward_balance(second, "stu-2") == reward_balance(first, "stu-2")
        assert find_record(flipped.favocoin_transactions, f"ft-att-miss-stu-2-{self.DAY}") is None
        assert reward_balance(flipped, "stu-2") == reward_balance(defaults, "stu-2") + 10

    def test_ineligible_class_has_no_rewards(self, new_ids, defaults):
        with_class = add_class(new_ids, "Maternal", [], [])(defaults)

        updated = save_attendance("class-new", self.DAY, [{"studentId": "stu-3", "present": True}])(with_class)

        assert updated.favocoin_transactions == with_class.favocoin_transactions

    def test_save_grades_replaces_same_day(self, defaults):
        first = save_grades("subj-1", self.DAY, [{"studentId": "stu-1", "grade": 5}])(defaults)
        second = save_grades("subj-1", self.DAY, [{"studentId": "stu-1", "grade": 9}])(first)

        same_day = [g for g in second.grades if g["date"] == self.DAY and g["subjectId"] == "subj-1"]
        assert [g["grade"] for g in same_day] == [9]

    def test_import_grades(self, defaults):
        existing = defaults.grades[0]
        imported = [{**existing, "grade": 10}, {"studentId": "stu-3", "subjectId": "subj-4", "grade": 7, "date": self.DAY}]

        updated = import_grades(imported)(defaults)

        assert len(updated.grades) == len(defaults.grades) + 1
        assert {**existing, "grade": 10} in updated.grades


class TestLedger:
    """Transactions and tuition billing."""

    def test_add_and_pay(self, new_ids, defaults):
        added = add_transaction(
            new_ids, {"description": "Uniforme", "amount": 80, "type": "INCOME", "status": "PENDING"}
        )(defaults)
        paid = mark_as_paid("trans-new", "2025-03-11", "PIX")(added)

        tx = find_record(paid.transactions, "trans-new")
        assert tx["status"] == "PAID"
        assert tx["paidDate"] == "2025-03-11"
        assert tx["paymentMethod"] == "PIX"
        assert find_record(paid.transactions, "trans-3")["status"] == "PENDING"

    def test_tuition_batch(self, ctx, defaults):
        updated = generate_tuition_batch(ctx, 3, 2025, "2025-03-10", "serv-1")(defaults)

        new = updated.transactions[len(defaults.transactions):]
        assert len(new) == len(defaults.students)
        entry = find_record(new, "trans-tuition-1-stu-1")
        assert entry["description"] == "Mensalidade Fundamental I - 3/2025 - João Silva"
        assert entry["amount"] == 500
        assert entry["status"] == "PENDING"
        assert entry["costCenterId"] == "cc-1"

    def test_tuition_batch_idempotent(self, ctx, defaults):
        once = generate_tuition_batch(ctx, 3, 2025, "2025-03-10", "serv-1")(defaults)
        twice = generate_tuition_batch(ctx, 3, 2025, "2025-03-10", "serv-2")(once)

        assert twice.transactions == once.transactions

    def test_carne_current_year(self, ctx, defaults):
        updated = generate_student_carne(ctx, "stu-1", "serv-1", TODAY.year)(defaults)

        new = updated.transactions[len(defaults.transactions):]
        assert [t["dueDate"] for t in new][:2] == ["2025-03-10", "2025-04-10"]
        assert len(new) == 10
        assert all(t["recurrence"] for t in new)

        again = generate_student_carne(ctx, "stu-1", "serv-1", TODAY.year)(updated)
        assert again.transactions == updated.transactions

    def test_carne_future_year_starts_in_january(self, ctx, defaults):
        updated = generate_student_carne(ctx, "stu-1", "serv-1", 2026)(defaults)

        assert len(updated.transactions) - len(defaults.transactions) == 12

    def test_carne_unknown_student(self, ctx, defaults):
        updater = generate_student_carne(ctx, "ghost", "serv-1", 2025)

        assert updater(defaults) is defaults


class TestRewards:
    """Manual entries and the store."""

    def test_manual_entry(self, ctx, defaults):
        updated = add_reward_entry(ctx, "stu-2", 15, "Ajudou colega", "EARN")(defaults)

        assert reward_balance(updated, "stu-2") == reward_balance(defaults, "stu-2") + 15

    def test_unknown_type_rejected(self, ctx):
        with pytest.raises(ValueError):
            add_reward_entry(ctx, "stu-2", 15, "x", "GIFT")

    def test_collective_purchase(self, ctx, defaults):
        updated = purchase_store_item(ctx, ["stu-1", "stu-2"], "item-4")(defaults)

        assert find_record(updated.store_items, "item-4")["stock"] == 0
        spends = [t for t in updated.favocoin_transactions if t["type"] == "SPEND"]
        assert [t["amount"] for t in spends] == [-250, -250]
        assert spends[0]["description"] == "Compra: Sessão de Cinema (Coletiva)"

    def test_out_of_stock_is_noop(self, ctx, defaults):
        sold_out = purchase_store_item(ctx, ["stu-1"], "item-4")(defaults)

        assert purchase_store_item(ctx, ["stu-2"], "item-4")(sold_out) is sold_out
        assert purchase_store_item(ctx, [], "item-1")(defaults) is defaults


class TestAccounts:
    def test_change_password_updates_every_copy(self, defaults):
        updated = change_password("teach-1", "n3w")(defaults)

        for collection in (updated.users, updated.teachers):
            teacher = find_record(collection, "teach-1")
            assert teacher["password"] == "n3w"
            assert teacher["needsPasswordChange"] is False

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            change_password("teach-1", "")

    def test_find_user_by_email(self, defaults):
        assert find_user_by_email(defaults, "  ADMIN@school.com")["id"] == "admin-1"
        assert find_user_by_email(defaults, "nobody@x.com") is None
