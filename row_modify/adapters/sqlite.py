"""SQLite adapter (sqlite3 stdlib)."""

from __future__ import annotations

import sqlite3
from typing import Any

from row_modify.core.connection import ConnectionConfig
from row_modify.core.exceptions import ConnectionError, PoolError  # noqa: A004


class SqliteAdapter:
    """SQLite adapter using stdlib sqlite3.

    Connections are opened with ``check_same_thread=False`` because a pooled
    connection may serve requests on different threads, one at a time.
    """

    @property
    def paramstyle(self) -> str:
        return "named"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        try:
            for _ in range(config.pool_size):
                conn = sqlite3.connect(
                    config.database,
                    timeout=config.pool_timeout,
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                pool.append(conn)
        except sqlite3.Error as e:
            self.close_pool(pool)
            raise ConnectionError(f"Cannot open SQLite database '{config.database}': {e}") from e
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(
        self,
        connection: sqlite3.Connection,
        sql: str,
        params: dict[str, Any] | None = None,
    ) -> sqlite3.Cursor:
        return connection.execute(sql, params or {})

    def commit(self, connection: sqlite3.Connection) -> None:
        connection.commit()

    def rollback(self, connection: sqlite3.Connection) -> None:
        connection.rollback()
