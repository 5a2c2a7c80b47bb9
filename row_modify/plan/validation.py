"""Revision validation step."""

from __future__ import annotations

import logging
from typing import Any

from row_modify.core.context import ExecutionContext
from row_modify.core.exceptions import PlanCompilationError, RevisionMismatchError
from row_modify.plan.step import ModifyStep

logger = logging.getLogger(__name__)


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


class RevisionValidationStep(ModifyStep):
    """Rejects a request whose revision is not the item's current revision.

    Runs a query resource returning the stored revision for the submitted
    content id and compares it, in string form, with the submitted revision.
    A missing submitted revision or a missing stored row is treated as a
    mismatch. Never dispatches an update, so execute() returns False.
    """

    def __init__(self, request_name: str, revision_param: str) -> None:
        if not request_name:
            raise PlanCompilationError("request_name must not be empty")
        self._request_name = request_name
        self.revision_param = revision_param

    @property
    def request_name(self) -> str:
        return self._request_name

    def execute(self, context: ExecutionContext) -> bool:
        submitted = _first(context.get_param(self.revision_param))
        with context.perform_query(self._request_name) as data:
            row = data.first()
        current = next(iter(row.values()), None) if row else None
        if submitted is None or current is None or str(submitted) != str(current):
            logger.warning(
                "Revision mismatch on %s: submitted %r, current %r",
                self._request_name,
                submitted,
                current,
            )
            raise RevisionMismatchError(self.revision_param, submitted, current)
        return False

    def __repr__(self) -> str:
        return f"RevisionValidationStep({self._request_name!r}, {self.revision_param!r})"
