"""Backend datasets and the factory that materializes them.

A Dataset is the backend-executable resource a step names. A modify dataset
holds one statement list per DbAction; the dispatcher picks the list from
the request's discriminator parameter. Revision checks use a query dataset.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from row_modify.core.enums import DbAction
from row_modify.core.exceptions import PlanCompilationError
from row_modify.core.registry import DatasetRegistry
from row_modify.mapping.system import ColumnMapper, ColumnMapping, ParamSource, ValueSource

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Binding:
    """A named SQL placeholder and the source of its value."""

    name: str
    source: ValueSource


@dataclass(frozen=True)
class Statement:
    """Parameterised SQL (``:name`` style) with its bindings."""

    sql: str
    bindings: tuple[Binding, ...] = ()

    def resolve(self, params: dict[str, Any], context_values: dict[str, Any]) -> dict[str, Any]:
        """Bound values; list values mean one row per element."""
        return {b.name: b.source.resolve(params, context_values) for b in self.bindings}


@dataclass(frozen=True)
class Dataset:
    """A named backend resource."""

    name: str
    statements: dict[DbAction, tuple[Statement, ...]] = field(default_factory=dict)
    query: Statement | None = None

    def statements_for(self, action: DbAction) -> tuple[Statement, ...]:
        return self.statements.get(action, ())


class DatasetFactory(Protocol):
    """Creates backend resources for compiled plans and returns their names."""

    def create_modify_dataset(self, name: str, column_mapper: ColumnMapper) -> str:
        """Create an insert/update/delete resource over the mapped columns."""
        ...

    def create_revision_query(
        self,
        name: str,
        table: str,
        key_column: str,
        revision_column: str,
        key_param: str,
    ) -> str:
        """Create a query returning the current revision for a content id."""
        ...

    def create_sort_rank_query(
        self,
        name: str,
        table: str,
        rank_column: str,
        keys: list[ColumnMapping],
    ) -> str:
        """Create a query returning the sort ranks of a child table, ascending."""
        ...


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise PlanCompilationError(f"Invalid SQL identifier: {name!r}")
    return name


def _bind_name(mapping: ColumnMapping) -> str:
    return "p_" + mapping.column.lower()


def _binding(mapping: ColumnMapping) -> Binding:
    return Binding(_bind_name(mapping), mapping.source)


class SqlDatasetFactory:
    """Generates SQL datasets and registers them in a DatasetRegistry.

    For each mapped table:

    * insert writes every mapped column,
    * update sets the non-key columns, filtered by the key columns,
    * delete filters by the key columns.

    Insert and update run in table order; delete runs in reverse table order
    so child rows go before the rows they reference.
    """

    def __init__(self, registry: DatasetRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> DatasetRegistry:
        return self._registry

    def create_modify_dataset(self, name: str, column_mapper: ColumnMapper) -> str:
        if len(column_mapper) == 0:
            raise PlanCompilationError(f"Dataset '{name}' maps no columns")

        inserts: list[Statement] = []
        updates: list[Statement] = []
        deletes: list[Statement] = []
        for table in column_mapper.tables():
            inserts.append(self._insert(table, column_mapper.columns(table)))
            keys = column_mapper.key_columns(table)
            values = column_mapper.value_columns(table)
            if keys:
                if values:
                    updates.append(self._update(table, values, keys))
                deletes.append(self._delete(table, keys))
        deletes.reverse()

        dataset = Dataset(
            name=name,
            statements={
                DbAction.INSERT: tuple(inserts),
                DbAction.UPDATE: tuple(updates),
                DbAction.DELETE: tuple(deletes),
            },
        )
        logger.debug(
            "Created dataset %s over tables %s", name, ", ".join(column_mapper.tables())
        )
        return self._registry.register(dataset)

    def create_revision_query(
        self,
        name: str,
        table: str,
        key_column: str,
        revision_column: str,
        key_param: str,
    ) -> str:
        sql = (
            f"SELECT {_identifier(revision_column)} FROM {_identifier(table)} "
            f"WHERE {_identifier(key_column)} = :p_key"
        )
        dataset = Dataset(
            name=name,
            query=Statement(sql, (Binding("p_key", ParamSource(key_param)),)),
        )
        return self._registry.register(dataset)

    def create_sort_rank_query(
        self,
        name: str,
        table: str,
        rank_column: str,
        keys: list[ColumnMapping],
    ) -> str:
        if not keys:
            raise PlanCompilationError(f"Dataset '{name}' has no selection keys")
        rank = _identifier(rank_column)
        where = " AND ".join(f"{_identifier(m.column)} = :{_bind_name(m)}" for m in keys)
        sql = f"SELECT {rank} FROM {_identifier(table)} WHERE {where} ORDER BY {rank}"
        dataset = Dataset(name=name, query=Statement(sql, tuple(_binding(m) for m in keys)))
        return self._registry.register(dataset)

    @staticmethod
    def _insert(table: str, columns: list[ColumnMapping]) -> Statement:
        names = ", ".join(_identifier(m.column) for m in columns)
        placeholders = ", ".join(":" + _bind_name(m) for m in columns)
        return Statement(
            f"INSERT INTO {_identifier(table)} ({names}) VALUES ({placeholders})",
            tuple(_binding(m) for m in columns),
        )

    @staticmethod
    def _update(
        table: str, values: list[ColumnMapping], keys: list[ColumnMapping]
    ) -> Statement:
        assignments = ", ".join(f"{_identifier(m.column)} = :{_bind_name(m)}" for m in values)
        where = " AND ".join(f"{_identifier(m.column)} = :{_bind_name(m)}" for m in keys)
        return Statement(
            f"UPDATE {_identifier(table)} SET {assignments} WHERE {where}",
            tuple(_binding(m) for m in [*values, *keys]),
        )

    @staticmethod
    def _delete(table: str, keys: list[ColumnMapping]) -> Statement:
        where = " AND ".join(f"{_identifier(m.column)} = :{_bind_name(m)}" for m in keys)
        return Statement(
            f"DELETE FROM {_identifier(table)} WHERE {where}",
            tuple(_binding(m) for m in keys),
        )
