"""Plan layer - modify steps, plans, plan sets and their builders."""

from __future__ import annotations

from row_modify.plan.builders import BuilderKind, ModifyPlanBuilder, build_plan
from row_modify.plan.events import EditorChangeEvent, change_action, modified_binary_fields
from row_modify.plan.plan import ModifyPlan
from row_modify.plan.plan_set import ModifyPlanSet
from row_modify.plan.sequencing import SortRankStep
from row_modify.plan.step import ConditionalStep, ModifyStep, ParamPresent, UpdateStep
from row_modify.plan.validation import RevisionValidationStep

__all__ = [
    "ModifyStep",
    "UpdateStep",
    "ConditionalStep",
    "ParamPresent",
    "RevisionValidationStep",
    "SortRankStep",
    "ModifyPlan",
    "ModifyPlanSet",
    "ModifyPlanBuilder",
    "BuilderKind",
    "build_plan",
    "EditorChangeEvent",
    "change_action",
    "modified_binary_fields",
]
