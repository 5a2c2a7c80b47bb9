"""Modify plan: an ordered list of steps for one operation."""

from __future__ import annotations

import logging

from row_modify.core.context import ExecutionContext
from row_modify.core.enums import PlanType
from row_modify.core.exceptions import PlanCompilationError, PlanSealedError
from row_modify.plan.step import Condition, ModifyStep

logger = logging.getLogger(__name__)


class ModifyPlan:
    """Steps executed in insertion order, plus the binary-field registry.

    The registry maps each binary field the plan may modify to the
    conditions under which it is modified; None means always. A plan is
    mutable only until seal() is called at the end of compilation.
    """

    def __init__(self, plan_type: PlanType) -> None:
        if plan_type is None:
            raise PlanCompilationError("plan_type must not be None")
        self._type = plan_type
        self._steps: list[ModifyStep] = []
        self._binary_fields: dict[str, tuple[Condition, ...] | None] = {}
        self._sealed = False

    @property
    def type(self) -> PlanType:
        return self._type

    @property
    def steps(self) -> tuple[ModifyStep, ...]:
        return tuple(self._steps)

    @property
    def binary_fields(self) -> dict[str, tuple[Condition, ...] | None]:
        return dict(self._binary_fields)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def add_step(self, step: ModifyStep) -> None:
        self._check_open()
        if step is None:
            raise PlanCompilationError("step must not be None")
        self._steps.append(step)

    def add_binary_field(self, name: str, conditions: tuple[Condition, ...] | None = None) -> None:
        self._check_open()
        self._binary_fields[name] = conditions

    def add_all_steps(self, other: ModifyPlan) -> None:
        """Append the steps of *other* and merge its binary fields."""
        self._check_open()
        if other is None:
            raise PlanCompilationError("plan must not be None")
        self._steps.extend(other.steps)
        self._binary_fields.update(other.binary_fields)

    def seal(self) -> None:
        self._sealed = True

    def execute(self, context: ExecutionContext) -> int:
        """Run every step in order; returns how many dispatched a request.

        The first failure aborts the remaining steps and propagates.
        """
        dispatched = 0
        for step in self._steps:
            if step.execute(context):
                dispatched += 1
        logger.debug(
            "Executed %s plan: %d of %d step(s) dispatched",
            self._type.value,
            dispatched,
            len(self._steps),
        )
        return dispatched

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"ModifyPlan({self._type.name}, steps={self._steps!r})"

    def _check_open(self) -> None:
        if self._sealed:
            raise PlanSealedError(f"{self._type.name} plan is sealed")
