"""Unit tests for ModifyPlan and ModifyPlanSet."""

from __future__ import annotations

import pytest

from row_modify.core.enums import PlanType
from row_modify.core.exceptions import (
    DuplicatePlanError,
    InternalRequestCallError,
    PlanCompilationError,
    PlanSealedError,
)
from row_modify.plan.plan import ModifyPlan
from row_modify.plan.plan_set import ModifyPlanSet
from row_modify.plan.step import ConditionalStep, ParamPresent, UpdateStep


def _update(name: str) -> UpdateStep:
    return UpdateStep(name, "DBActionType", "UPDATE")


class TestModifyPlan:
    def test_steps_run_in_insertion_order(self, make_context, fake_dispatcher) -> None:
        plan = ModifyPlan(PlanType.UPDATE_PLAN)
        for name in ("Update1", "SimpleDelete2", "SimpleInsert2"):
            plan.add_step(_update(name))
        assert plan.execute(make_context({})) == 3
        assert fake_dispatcher.names() == ["Update1", "SimpleDelete2", "SimpleInsert2"]

    def test_execute_counts_only_dispatched_steps(self, make_context) -> None:
        plan = ModifyPlan(PlanType.UPDATE_PLAN)
        plan.add_step(_update("Update1"))
        plan.add_step(ConditionalStep(_update("Update1Binarybody"), [ParamPresent("body")]))
        assert plan.execute(make_context({})) == 1

    def test_failure_aborts_remaining_steps(self, make_context, fake_dispatcher) -> None:
        fake_dispatcher.errors["Update1"] = InternalRequestCallError("Update1", "boom")
        plan = ModifyPlan(PlanType.UPDATE_PLAN)
        plan.add_step(_update("Update1"))
        plan.add_step(_update("Update2"))
        with pytest.raises(InternalRequestCallError):
            plan.execute(make_context({}))
        assert fake_dispatcher.names() == ["Update1"]

    def test_steps_is_a_tuple_copy(self) -> None:
        plan = ModifyPlan(PlanType.INSERT_PLAN)
        plan.add_step(_update("Insert1"))
        steps = plan.steps
        assert isinstance(steps, tuple)
        plan.add_step(_update("Insert2"))
        assert len(steps) == 1

    def test_add_all_steps_merges_binary_fields(self) -> None:
        plan = ModifyPlan(PlanType.INSERT_PLAN)
        plan.add_step(_update("Insert1"))
        plan.add_binary_field("body")
        other = ModifyPlan(PlanType.INSERT_PLAN)
        other.add_step(_update("SimpleInsert2"))
        condition = (ParamPresent("image"),)
        other.add_binary_field("image", condition)
        plan.add_all_steps(other)
        assert [s.request_name for s in plan.steps] == ["Insert1", "SimpleInsert2"]
        assert plan.binary_fields == {"body": None, "image": condition}

    def test_sealed_plan_rejects_changes(self) -> None:
        plan = ModifyPlan(PlanType.INSERT_PLAN)
        plan.seal()
        assert plan.sealed
        with pytest.raises(PlanSealedError):
            plan.add_step(_update("Insert1"))
        with pytest.raises(PlanSealedError):
            plan.add_binary_field("body")
        with pytest.raises(PlanSealedError):
            plan.add_all_steps(ModifyPlan(PlanType.INSERT_PLAN))

    def test_none_step_rejected(self) -> None:
        with pytest.raises(PlanCompilationError):
            ModifyPlan(PlanType.INSERT_PLAN).add_step(None)  # type: ignore[arg-type]


class TestModifyPlanSet:
    def test_add_and_get(self) -> None:
        plan_set = ModifyPlanSet()
        plan = ModifyPlan(PlanType.INSERT_PLAN)
        plan_set.add_plan(plan)
        assert plan_set.get_plan(PlanType.INSERT_PLAN) is plan
        assert plan_set.get_plan(PlanType.UPDATE_PLAN) is None
        assert PlanType.INSERT_PLAN in plan_set
        assert PlanType.DELETE_ITEM not in plan_set

    def test_duplicate_type_rejected(self) -> None:
        plan_set = ModifyPlanSet()
        plan_set.add_plan(ModifyPlan(PlanType.UPDATE_PLAN))
        with pytest.raises(DuplicatePlanError):
            plan_set.add_plan(ModifyPlan(PlanType.UPDATE_PLAN))

    def test_duplicate_is_a_value_error(self) -> None:
        plan_set = ModifyPlanSet()
        plan_set.add_plan(ModifyPlan(PlanType.UPDATE_PLAN))
        with pytest.raises(ValueError):
            plan_set.add_plan(ModifyPlan(PlanType.UPDATE_PLAN))

    def test_none_plan_rejected(self) -> None:
        with pytest.raises(ValueError):
            ModifyPlanSet().add_plan(None)  # type: ignore[arg-type]

    def test_get_all_plans_is_one_shot(self) -> None:
        plan_set = ModifyPlanSet()
        plan_set.add_plan(ModifyPlan(PlanType.DELETE_ITEM))
        plan_set.add_plan(ModifyPlan(PlanType.INSERT_PLAN))
        plans = plan_set.get_all_plans()
        assert [p.type for p in plans] == [PlanType.INSERT_PLAN, PlanType.DELETE_ITEM]
        assert list(plans) == []
        assert len(plan_set) == 2

    def test_seal_seals_every_plan(self) -> None:
        plan_set = ModifyPlanSet()
        plan_set.add_plan(ModifyPlan(PlanType.INSERT_PLAN))
        plan_set.add_plan(ModifyPlan(PlanType.UPDATE_PLAN))
        plan_set.seal()
        assert all(plan.sealed for plan in plan_set.get_all_plans())
