"""Change events describing what a plan execution modified."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from row_modify.core.context import ExecutionContext
from row_modify.core.enums import ChangeAction, PlanType
from row_modify.plan.plan import ModifyPlan

_CHANGE_ACTIONS: dict[PlanType, ChangeAction] = {
    PlanType.INSERT_PLAN: ChangeAction.INSERT,
    PlanType.UPDATE_PLAN: ChangeAction.UPDATE,
    PlanType.DELETE_ITEM: ChangeAction.DELETE,
    PlanType.DELETE_COMPLEX_CHILD: ChangeAction.DELETE,
}


def change_action(plan_type: PlanType) -> ChangeAction:
    return _CHANGE_ACTIONS[plan_type]


@dataclass(frozen=True)
class EditorChangeEvent:
    """Notification sent to listeners after a successful modification."""

    action: ChangeAction
    content_id: Any
    revision: Any
    child_id: Any = None
    child_row_id: Any = None
    binary_fields: frozenset[str] = field(default_factory=frozenset)


def modified_binary_fields(plan: ModifyPlan, context: ExecutionContext) -> frozenset[str]:
    """Binary fields of *plan* modified by the request in *context*.

    A field without conditions is always modified; otherwise any matching
    condition marks it modified.

    Only insert and update plans modify item data; other plans report none.
    """
    if not plan.type.updates_item_data:
        return frozenset()
    modified = set()
    for name, conditions in plan.binary_fields.items():
        if conditions is None or any(c.is_match(context) for c in conditions):
            modified.add(name)
    return frozenset(modified)
