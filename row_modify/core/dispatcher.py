"""Request dispatcher.

The Dispatcher resolves named datasets from the DatasetRegistry, selects
statements from the request's discriminator parameter and executes them
through the adapter. Each request runs in its own unit of work; use
transaction() to group the requests of one plan.
"""

from __future__ import annotations

import logging
from typing import Any

from row_modify.core.connection import ConnectionConfig, ConnectionManager
from row_modify.core.context import ExecutionContext, ExecutionData
from row_modify.core.exceptions import InternalRequestCallError, RowModifyError
from row_modify.core.registry import DatasetRegistry
from row_modify.core.transaction import TransactionManager, execute_query, execute_update
from row_modify.mapping.datasets import Dataset

logger = logging.getLogger(__name__)


class Dispatcher:
    """Synchronous request dispatcher."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        registry: DatasetRegistry,
    ) -> None:
        self._connection_manager = connection_manager
        self._registry = registry

    @classmethod
    def from_config(cls, config: ConnectionConfig, registry: DatasetRegistry) -> Dispatcher:
        """Create a Dispatcher from a ConnectionConfig and DatasetRegistry."""
        return cls(ConnectionManager(config), registry)

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    @property
    def registry(self) -> DatasetRegistry:
        return self._registry

    def perform_update(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        """Run an update resource and commit it.

        The connection stays reserved until the returned data is released.
        """
        dataset = self._dataset(request_name)
        adapter = self._connection_manager.adapter
        conn = self._connection_manager.acquire()
        try:
            rowcount = execute_update(adapter, conn, dataset, context)
            adapter.commit(conn)
        except RowModifyError:
            self._abort(conn)
            raise
        except Exception as e:
            self._abort(conn)
            raise InternalRequestCallError(request_name, str(e)) from e
        return ExecutionData(
            request_name,
            rowcount=rowcount,
            release=lambda: self._connection_manager.release(conn),
        )

    def perform_query(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        """Run a query resource; rows are fetched before returning."""
        dataset = self._dataset(request_name)
        adapter = self._connection_manager.adapter
        conn = self._connection_manager.acquire()
        try:
            rows = execute_query(adapter, conn, dataset, context)
        except RowModifyError:
            self._connection_manager.release(conn)
            raise
        except Exception as e:
            self._connection_manager.release(conn)
            raise InternalRequestCallError(request_name, str(e)) from e
        return ExecutionData(
            request_name,
            rows=rows,
            rowcount=len(rows),
            release=lambda: self._connection_manager.release(conn),
        )

    def transaction(self) -> TransactionManager:
        """Context manager dispatching every request on one connection."""
        return TransactionManager(self._connection_manager, self._registry)

    def _dataset(self, request_name: str) -> Dataset:
        if not self._registry.has(request_name):
            raise InternalRequestCallError(request_name, "no such resource")
        return self._registry.get(request_name)

    def _abort(self, conn: Any) -> None:
        try:
            self._connection_manager.adapter.rollback(conn)
        finally:
            self._connection_manager.release(conn)
