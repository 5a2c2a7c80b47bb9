"""Plan set: at most one modify plan per plan type."""

from __future__ import annotations

from collections.abc import Iterator

from row_modify.core.enums import PlanType
from row_modify.core.exceptions import DuplicatePlanError, PlanCompilationError
from row_modify.plan.plan import ModifyPlan


class ModifyPlanSet:
    """Fixed table of plans indexed by PlanType."""

    def __init__(self) -> None:
        self._plans: dict[PlanType, ModifyPlan | None] = dict.fromkeys(PlanType)

    def add_plan(self, plan: ModifyPlan) -> None:
        """Register *plan* under its type.

        Raises:
            PlanCompilationError: If plan is None.
            DuplicatePlanError: If a plan of the same type is registered.
        """
        if plan is None:
            raise PlanCompilationError("plan must not be None")
        if self._plans[plan.type] is not None:
            raise DuplicatePlanError(plan.type.name)
        self._plans[plan.type] = plan

    def get_plan(self, plan_type: PlanType) -> ModifyPlan | None:
        return self._plans.get(plan_type)

    def get_all_plans(self) -> Iterator[ModifyPlan]:
        """The registered plans in PlanType order; a one-shot iterator."""
        return (plan for plan in self._plans.values() if plan is not None)

    def seal(self) -> None:
        for plan in self.get_all_plans():
            plan.seal()

    def __contains__(self, plan_type: object) -> bool:
        return isinstance(plan_type, PlanType) and self._plans[plan_type] is not None

    def __len__(self) -> int:
        return sum(1 for _ in self.get_all_plans())
