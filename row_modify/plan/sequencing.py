"""Sort rank assignment for sequenced complex children."""

from __future__ import annotations

import logging

from row_modify.core.context import ExecutionContext
from row_modify.core.exceptions import PlanCompilationError
from row_modify.plan.step import ModifyStep

logger = logging.getLogger(__name__)


class SortRankStep(ModifyStep):
    """Assigns sort ranks to the child rows about to be inserted.

    Queries the current ranks of the item's child rows and continues after
    the highest one, starting at 1 for an item without rows. When the
    control parameter holds a list of new row ids, one rank per id is
    assigned in the same order. Never dispatches an update.
    """

    def __init__(self, request_name: str, rank_param: str, control_param: str) -> None:
        if not request_name:
            raise PlanCompilationError("request_name must not be empty")
        self._request_name = request_name
        self.rank_param = rank_param
        self.control_param = control_param

    @property
    def request_name(self) -> str:
        return self._request_name

    def execute(self, context: ExecutionContext) -> bool:
        with context.perform_query(self._request_name) as data:
            ranks = [int(v) for row in data.rows for v in row.values() if v is not None]
        first = max(ranks) + 1 if ranks else 1

        row_ids = context.get_param(self.control_param)
        if isinstance(row_ids, list):
            context.set_param(self.rank_param, list(range(first, first + len(row_ids))))
        else:
            context.set_param(self.rank_param, first)
        logger.debug("%s: new rows ranked from %d", self._request_name, first)
        return False

    def __repr__(self) -> str:
        return f"SortRankStep({self._request_name!r}, {self.rank_param!r})"
