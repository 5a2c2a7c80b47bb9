"""Transaction management and statement execution.

TransactionManager binds every request of a plan execution to one pooled
connection. It commits on success and rolls back on exception, so a plan
either applies all of its steps or none of them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from row_modify.core.context import ExecutionContext, ExecutionData
from row_modify.core.enums import DbAction
from row_modify.core.exceptions import (
    InternalRequestCallError,
    RequestValidationError,
    RowModifyError,
    TransactionStateError,
)
from row_modify.core.params import expand_rows, normalize_params, truncated_params

if TYPE_CHECKING:
    from row_modify.core.connection import ConnectionManager
    from row_modify.core.registry import DatasetRegistry
    from row_modify.mapping.datasets import Dataset

logger = logging.getLogger(__name__)


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def rows_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor results to list of dicts.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    rows = cursor.fetchall()
    if not rows:
        return []

    first_row = rows[0]
    if isinstance(first_row, dict):
        return [dict(row) for row in rows]

    # sqlite3.Row and plain tuples
    return [dict(zip(columns, tuple(row), strict=True)) for row in rows]


def resolve_action(dataset: Dataset, context: ExecutionContext) -> DbAction:
    """Action selected by the discriminator parameter of the live map."""
    param = context.config.action_param
    value = context.get_param(param)
    if isinstance(value, list):
        value = value[0] if value else None
    action = context.config.action_for(value)
    if action is None:
        raise RequestValidationError(param, value, f"unknown action for '{dataset.name}'")
    return action


def execute_update(
    adapter: Any, connection: Any, dataset: Dataset, context: ExecutionContext
) -> int:
    """Run the statements the discriminator selects; returns affected rows.

    List-valued parameters are expanded into aligned rows, one execution
    per row.
    """
    if not dataset.statements:
        raise InternalRequestCallError(dataset.name, "not an update resource")
    action = resolve_action(dataset, context)
    context_values = context.context_values()
    total = 0
    for statement in dataset.statements_for(action):
        sql = normalize_params(statement.sql, adapter.paramstyle)
        rows = expand_rows(statement.resolve(context.params, context_values))
        for row in rows:
            cursor = adapter.execute(connection, sql, row)
            total += max(int(cursor.rowcount), 0)
    logger.debug("Dispatched %s (%s): %d row(s)", dataset.name, action.value, total)
    return total


def execute_query(
    adapter: Any, connection: Any, dataset: Dataset, context: ExecutionContext
) -> list[dict[str, Any]]:
    """Run a query resource against the first value of each parameter."""
    if dataset.query is None:
        raise InternalRequestCallError(dataset.name, "not a query resource")
    values = dataset.query.resolve(context.params, context.context_values())
    sql = normalize_params(dataset.query.sql, adapter.paramstyle)
    cursor = adapter.execute(connection, sql, truncated_params(values))
    return rows_to_dicts(cursor)


class TransactionManager:
    """Request dispatcher bound to a single connection.

    Usable wherever a RequestDispatcher is expected. Commits on clean exit,
    rolls back when the block raises, and returns the connection to the
    pool either way.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        registry: DatasetRegistry,
    ) -> None:
        self._connection_manager = connection_manager
        self._adapter = connection_manager.adapter
        self._registry = registry
        self._connection: Any = None
        self._state = _TxState.IDLE

    @property
    def state(self) -> str:
        return self._state.value

    def __enter__(self) -> TransactionManager:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        self._connection = self._connection_manager.acquire()
        self._state = _TxState.ACTIVE
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        try:
            if self._state == _TxState.ACTIVE:
                if exc_type is not None:
                    self._adapter.rollback(self._connection)
                    self._state = _TxState.ROLLED_BACK
                    logger.debug("Transaction rolled back after %s", exc_type.__name__)
                else:
                    self._adapter.commit(self._connection)
                    self._state = _TxState.COMMITTED
        finally:
            self._connection_manager.release(self._connection)
            self._connection = None

    def perform_update(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        """Run an update resource inside this transaction."""
        self._check_active()
        dataset = self._dataset(request_name)
        try:
            rowcount = execute_update(self._adapter, self._connection, dataset, context)
        except RowModifyError:
            raise
        except Exception as e:
            raise InternalRequestCallError(request_name, str(e)) from e
        return ExecutionData(request_name, rowcount=rowcount)

    def perform_query(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        """Run a query resource inside this transaction."""
        self._check_active()
        dataset = self._dataset(request_name)
        try:
            rows = execute_query(self._adapter, self._connection, dataset, context)
        except RowModifyError:
            raise
        except Exception as e:
            raise InternalRequestCallError(request_name, str(e)) from e
        return ExecutionData(request_name, rows=rows, rowcount=len(rows))

    def commit(self) -> None:
        """Explicitly commit the transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "commit")
        self._adapter.commit(self._connection)
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Explicitly rollback the transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "rollback")
        self._adapter.rollback(self._connection)
        self._state = _TxState.ROLLED_BACK

    def _dataset(self, request_name: str) -> Dataset:
        if not self._registry.has(request_name):
            raise InternalRequestCallError(request_name, "no such resource")
        return self._registry.get(request_name)

    def _check_active(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")
