"""Key generators for new content ids and child row ids."""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol

from row_modify.core.connection import ConnectionManager
from row_modify.core.exceptions import ExecutionError, RowModifyError
from row_modify.core.params import normalize_params
from row_modify.core.transaction import rows_to_dicts

logger = logging.getLogger(__name__)


class KeyGenerator(Protocol):
    """Allocates unique integer ids per key name."""

    def next_id(self, key: str) -> int:
        ...

    def next_id_block(self, key: str, count: int) -> list[int]:
        ...


class InMemoryKeyGenerator:
    """Process-local counters; ids start at 1 for every key name."""

    def __init__(self, start: dict[str, int] | None = None) -> None:
        self._next: dict[str, int] = dict(start or {})
        self._lock = threading.Lock()

    def next_id(self, key: str) -> int:
        return self.next_id_block(key, 1)[0]

    def next_id_block(self, key: str, count: int) -> list[int]:
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        with self._lock:
            first = self._next.get(key, 1)
            self._next[key] = first + count
        return list(range(first, first + count))


class NextNumberKeyGenerator:
    """Allocates ids from a ``NEXTNUMBER(KEYNAME, NEXTNR)`` table.

    NEXTNR holds the last id handed out for KEYNAME. Each allocation reads
    and advances it in its own committed transaction.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        table: str = "NEXTNUMBER",
    ) -> None:
        self._connection_manager = connection_manager
        self._table = table
        self._lock = threading.Lock()

    def next_id(self, key: str) -> int:
        return self.next_id_block(key, 1)[0]

    def next_id_block(self, key: str, count: int) -> list[int]:
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        adapter = self._connection_manager.adapter
        with self._lock, self._connection_manager.get_connection() as conn:
            try:
                last = self._read(adapter, conn, key)
                if last is None:
                    last = 0
                    self._execute(
                        adapter,
                        conn,
                        f"INSERT INTO {self._table} (KEYNAME, NEXTNR) VALUES (:key, :nr)",
                        {"key": key, "nr": count},
                    )
                else:
                    self._execute(
                        adapter,
                        conn,
                        f"UPDATE {self._table} SET NEXTNR = :nr WHERE KEYNAME = :key",
                        {"key": key, "nr": last + count},
                    )
                adapter.commit(conn)
            except RowModifyError:
                adapter.rollback(conn)
                raise
            except Exception as e:
                adapter.rollback(conn)
                raise ExecutionError(f"Cannot allocate ids for '{key}': {e}") from e
        logger.debug("Allocated %d id(s) for %s starting at %d", count, key, last + 1)
        return list(range(last + 1, last + 1 + count))

    def _read(self, adapter: Any, conn: Any, key: str) -> int | None:
        cursor = self._execute(
            adapter, conn, f"SELECT NEXTNR FROM {self._table} WHERE KEYNAME = :key", {"key": key}
        )
        rows = rows_to_dicts(cursor)
        if not rows:
            return None
        return int(next(iter(rows[0].values())))

    @staticmethod
    def _execute(adapter: Any, conn: Any, sql: str, params: dict[str, Any]) -> Any:
        return adapter.execute(conn, normalize_params(sql, adapter.paramstyle), params)
