"""
Domain actions for the school data store.

Every action is a builder returning a pure ``Snapshot -> Snapshot`` updater
for StateStore.apply(). Builders that create records or dates take an
ActionContext captured at call time.

Example:
    >>> ctx = dispatcher.context()
    >>> dispatcher.dispatch(save_attendance("class-1", "2025-03-10", records))
    >>> dispatcher.dispatch(add_teacher(ctx, "Prof. Rui", "rui@school.com", ["subj-1"]))
"""

from .academics import (
    ABSENCE_PENALTY,
    ATTENDANCE_REWARD,
    REWARD_ELIGIBLE_YEARS,
    import_grades,
    is_reward_eligible,
    save_attendance,
    save_grades,
)
from .accounts import change_password, find_user_by_email
from .dispatcher import ActionContext, ActionDispatcher, random_id
from .enrollment import (
    add_class,
    add_student,
    add_teacher,
    delete_class,
    delete_student,
    delete_teacher,
    migrate_students,
    update_class,
    update_student,
)
from .ledger import (
    add_transaction,
    generate_student_carne,
    generate_tuition_batch,
    mark_as_paid,
)
from .records import (
    add_record,
    append_record,
    find_record,
    remove_record,
    set_penalty_config,
    update_record,
)
from .rewards import add_reward_entry, purchase_store_item, reward_balance

__all__ = [
    # Contract
    "ActionContext",
    "ActionDispatcher",
    "random_id",
    # Generic
    "append_record",
    "add_record",
    "update_record",
    "remove_record",
    "find_record",
    "set_penalty_config",
    # Enrollment
    "add_student",
    "update_student",
    "delete_student",
    "migrate_students",
    "add_teacher",
    "delete_teacher",
    "add_class",
    "update_class",
    "delete_class",
    # Academics
    "save_attendance",
    "save_grades",
    "import_grades",
    "is_reward_eligible",
    "REWARD_ELIGIBLE_YEARS",
    "ATTENDANCE_REWARD",
    "ABSENCE_PENALTY",
    # Ledger
    "add_transaction",
    "mark_as_paid",
    "generate_tuition_batch",
    "generate_student_carne",
    # Rewards
    "add_reward_entry",
    "purchase_store_item",
    "reward_balance",
    # Accounts
    "change_password",
    "find_user_by_email",
]
