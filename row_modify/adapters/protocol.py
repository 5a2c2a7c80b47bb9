"""Database adapter protocol.

Every adapter module MUST implement this protocol. The dispatcher only
talks to the backend through these methods, so all adapters expose the
same public interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from row_modify.core.connection import ConnectionConfig


@runtime_checkable
class SyncAdapter(Protocol):
    """Synchronous database adapter protocol."""

    @property
    def paramstyle(self) -> str:
        """Parameter binding style: 'named' (:name) or 'pyformat' (%(name)s)."""
        ...

    def create_pool(self, config: ConnectionConfig) -> Any:
        """Create a connection pool."""
        ...

    def acquire_connection(self, pool: Any) -> Any:
        """Acquire a connection from the pool."""
        ...

    def release_connection(self, connection: Any, pool: Any) -> None:
        """Release a connection back to the pool."""
        ...

    def close_pool(self, pool: Any) -> None:
        """Close the pool and release all connections."""
        ...

    def execute(
        self,
        connection: Any,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Execute SQL and return a cursor-like object."""
        ...

    def commit(self, connection: Any) -> None:
        """Commit the connection's current transaction."""
        ...

    def rollback(self, connection: Any) -> None:
        """Roll back the connection's current transaction."""
        ...
