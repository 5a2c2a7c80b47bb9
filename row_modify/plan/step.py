"""Modify steps.

A step is one unit of work in a modify plan. Steps are immutable once
built and are shared by every request that runs the plan; all request
state is read from the ExecutionContext.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from row_modify.core.context import ExecutionContext
from row_modify.core.exceptions import PlanCompilationError, RequestValidationError
from row_modify.core.params import (
    balanced_params,
    control_size,
    is_only_multi_value_param,
    truncated_params,
)

logger = logging.getLogger(__name__)


class ModifyStep(ABC):
    """One unit of work in a modify plan."""

    @property
    @abstractmethod
    def request_name(self) -> str:
        """Name of the backend resource this step dispatches to."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> bool:
        """Run the step; True when a backend request was issued."""


class Condition(Protocol):
    def is_match(self, context: ExecutionContext) -> bool:
        ...


@dataclass(frozen=True)
class ParamPresent:
    """Matches when a request parameter carries a value.

    None and the empty string count as absent. A list matches when any
    element does.
    """

    name: str

    def is_match(self, context: ExecutionContext) -> bool:
        return self._has_value(context.get_param(self.name))

    @staticmethod
    def _has_value(value: Any) -> bool:
        if isinstance(value, list):
            return any(ParamPresent._has_value(v) for v in value)
        return value is not None and value != ""


class UpdateStep(ModifyStep):
    """Dispatches one update request with a fixed action discriminator.

    Before dispatch the live parameter map is replaced by a working copy
    shaped for the request:

    * single-row requests, or requests where only the document payload
      marker is list-valued, see every list collapsed to its first element;
    * multi-row requests with a control parameter see every value balanced
      to the length of that parameter;
    * other multi-row requests see an unchanged copy.

    The discriminator is then forced to this step's action value. The
    original map is restored however the dispatch ends.
    """

    def __init__(
        self,
        request_name: str,
        action_param: str,
        action_value: str,
        *,
        allow_multiple: bool = False,
        control_param: str | None = None,
        payload_param: str = "psxmldoc",
    ) -> None:
        if not request_name:
            raise PlanCompilationError("request_name must not be empty")
        if not action_param:
            raise PlanCompilationError("action_param must not be empty")
        self._request_name = request_name
        self.action_param = action_param
        self.action_value = action_value
        self.allow_multiple = allow_multiple
        self.control_param = control_param
        self.payload_param = payload_param

    @property
    def request_name(self) -> str:
        return self._request_name

    def working_params(self, params: dict[str, Any]) -> dict[str, Any]:
        """Copy of *params* shaped for this step's request."""
        if not self.allow_multiple or is_only_multi_value_param(params, self.payload_param):
            working = truncated_params(params)
        elif self.control_param is not None:
            try:
                size = control_size(params, self.control_param)
            except KeyError:
                raise RequestValidationError(
                    self.control_param, None, "control parameter is required"
                ) from None
            logger.debug(
                "Balancing %s to %d row(s) on %s", self._request_name, size, self.control_param
            )
            working = balanced_params(params, size)
        else:
            working = dict(params)
        working[self.action_param] = self.action_value
        return working

    def execute(self, context: ExecutionContext) -> bool:
        working = self.working_params(context.params)
        with context.use_params(working), context.perform_update(self._request_name) as data:
            logger.debug("%s affected %d row(s)", self._request_name, data.rowcount)
        return True

    def __repr__(self) -> str:
        return (
            f"UpdateStep({self._request_name!r}, {self.action_param}={self.action_value!r}, "
            f"allow_multiple={self.allow_multiple})"
        )


class ConditionalStep(ModifyStep):
    """Runs a wrapped step only when every condition matches.

    Conditions are evaluated once, in order, immediately before delegation.
    An empty condition list always matches.
    """

    def __init__(self, step: ModifyStep, conditions: Iterable[Condition] | None) -> None:
        if step is None:
            raise PlanCompilationError("step must not be None")
        if conditions is None:
            raise PlanCompilationError("conditions must not be None")
        self._step = step
        self._conditions = tuple(conditions)

    @property
    def step(self) -> ModifyStep:
        return self._step

    @property
    def conditions(self) -> tuple[Condition, ...]:
        return self._conditions

    @property
    def request_name(self) -> str:
        return self._step.request_name

    def execute(self, context: ExecutionContext) -> bool:
        if not all([condition.is_match(context) for condition in self._conditions]):
            logger.debug("Skipped %s: condition not met", self.request_name)
            return False
        return self._step.execute(context)

    def __repr__(self) -> str:
        return f"ConditionalStep({self._step!r}, {list(self._conditions)!r})"
