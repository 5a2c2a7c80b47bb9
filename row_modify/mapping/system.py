"""System column mappings.

A SystemMapping names one bookkeeping column (content id, revision,
last-modified-by, ...) and where its value comes from. Builders turn lists
of them, plus the submitted data fields, into a ColumnMapper which the
dataset factory consumes. Neither outlives plan compilation.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Any

from row_modify.core.config import SystemMappingConfig


@dataclass(frozen=True)
class ParamSource:
    """Value of a request parameter (may be a list on multi-row requests)."""

    name: str

    def resolve(self, params: dict[str, Any], context_values: dict[str, Any]) -> Any:
        return params.get(self.name)


@dataclass(frozen=True)
class LiteralSource:
    """A constant value fixed at compile time."""

    value: Any

    def resolve(self, params: dict[str, Any], context_values: dict[str, Any]) -> Any:
        return self.value


@dataclass(frozen=True)
class ContextSource:
    """A value supplied by the execution context: ``user`` or ``now``."""

    key: str

    def resolve(self, params: dict[str, Any], context_values: dict[str, Any]) -> Any:
        return context_values.get(self.key)


ValueSource = ParamSource | LiteralSource | ContextSource


def source_from_config(config: SystemMappingConfig) -> ValueSource:
    if config.source == "param":
        return ParamSource(str(config.value))
    if config.source == "context":
        return ContextSource(str(config.value))
    return LiteralSource(config.value)


@dataclass(frozen=True)
class SystemMapping:
    """Immutable (table, column, source) triple for one system column."""

    table: str
    column: str
    source: ValueSource

    @classmethod
    def from_config(cls, config: SystemMappingConfig) -> SystemMapping:
        return cls(config.table, config.column, source_from_config(config))


@dataclass(frozen=True)
class ColumnMapping:
    """One backend column bound to a value source; key columns select rows."""

    table: str
    column: str
    source: ValueSource
    key: bool = False


class ColumnMapper:
    """Ordered, table-grouped column mappings for one dataset.

    Tables keep the order in which they were first mapped. A column mapped
    twice keeps its first source; mapping it again as a key marks it a key.
    """

    def __init__(self) -> None:
        self._mappings: list[ColumnMapping] = []

    def add(self, mapping: ColumnMapping) -> ColumnMapper:
        for index, existing in enumerate(self._mappings):
            if (existing.table, existing.column) == (mapping.table, mapping.column):
                if mapping.key and not existing.key:
                    self._mappings[index] = replace(existing, key=True)
                return self
        self._mappings.append(mapping)
        return self

    def add_system(self, mapping: SystemMapping, *, key: bool = False) -> ColumnMapper:
        return self.add(ColumnMapping(mapping.table, mapping.column, mapping.source, key))

    def extend(self, other: ColumnMapper) -> ColumnMapper:
        for mapping in other:
            self.add(mapping)
        return self

    def tables(self) -> list[str]:
        seen: list[str] = []
        for mapping in self._mappings:
            if mapping.table not in seen:
                seen.append(mapping.table)
        return seen

    def columns(self, table: str) -> list[ColumnMapping]:
        return [m for m in self._mappings if m.table == table]

    def key_columns(self, table: str) -> list[ColumnMapping]:
        return [m for m in self.columns(table) if m.key]

    def value_columns(self, table: str) -> list[ColumnMapping]:
        return [m for m in self.columns(table) if not m.key]

    def __iter__(self) -> Iterator[ColumnMapping]:
        return iter(list(self._mappings))

    def __len__(self) -> int:
        return len(self._mappings)
