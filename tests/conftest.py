"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pytest

from row_modify.core.config import EditorConfig
from row_modify.core.connection import ConnectionConfig
from row_modify.core.context import ExecutionContext, ExecutionData
from row_modify.core.enums import FieldSetType
from row_modify.mapping.fieldset import DisplayMapper, DisplayMapping, Field, FieldSet
from row_modify.mapping.system import ColumnMapper, ColumnMapping


class FakeDispatcher:
    """Records dispatched requests instead of touching a database.

    ``calls`` holds (kind, request name, snapshot of the live params).
    Query rows and errors can be preset per request name.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.errors: dict[str, Exception] = {}
        self.data: list[ExecutionData] = []
        self.commits = 0
        self.rollbacks = 0

    def perform_update(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        return self._perform("update", request_name, context)

    def perform_query(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        return self._perform("query", request_name, context)

    @contextmanager
    def transaction(self) -> Iterator[FakeDispatcher]:
        try:
            yield self
        except Exception:
            self.rollbacks += 1
            raise
        self.commits += 1

    def names(self, kind: str = "update") -> list[str]:
        return [name for k, name, _ in self.calls if k == kind]

    def _perform(self, kind: str, request_name: str, context: ExecutionContext) -> ExecutionData:
        self.calls.append((kind, request_name, dict(context.params)))
        if request_name in self.errors:
            raise self.errors[request_name]
        rows = self.rows.get(request_name, [])
        data = ExecutionData(request_name, rows=rows, rowcount=len(rows) or 1)
        self.data.append(data)
        return data


class RecordingDatasetFactory:
    """DatasetFactory that only records what it was asked to create."""

    def __init__(self) -> None:
        self.modify: dict[str, ColumnMapper] = {}
        self.queries: dict[str, tuple[Any, ...]] = {}

    def create_modify_dataset(self, name: str, column_mapper: ColumnMapper) -> str:
        assert name not in self.modify, f"dataset {name} created twice"
        self.modify[name] = column_mapper
        return name

    def create_revision_query(
        self,
        name: str,
        table: str,
        key_column: str,
        revision_column: str,
        key_param: str,
    ) -> str:
        self.queries[name] = (table, key_column, revision_column, key_param)
        return name

    def create_sort_rank_query(
        self,
        name: str,
        table: str,
        rank_column: str,
        keys: list[ColumnMapping],
    ) -> str:
        self.queries[name] = (table, rank_column, tuple(m.column for m in keys))
        return name


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config (one connection, one database)."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def editor_config() -> EditorConfig:
    return EditorConfig()


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def dataset_factory() -> RecordingDatasetFactory:
    return RecordingDatasetFactory()


@pytest.fixture
def make_context(fake_dispatcher: FakeDispatcher, editor_config: EditorConfig):
    """Build an ExecutionContext over the fake dispatcher."""

    def _make(params: dict[str, Any]) -> ExecutionContext:
        return ExecutionContext(params, fake_dispatcher, editor_config, user="editor")

    return _make


# --- Record shapes ---


@pytest.fixture
def keywords_field_set() -> FieldSet:
    return FieldSet(
        name="keywords",
        type=FieldSetType.SIMPLE_CHILD,
        table="KEYWORDS",
        fields={"keyword": Field("keyword", "KEYWORD")},
    )


@pytest.fixture
def sections_field_set() -> FieldSet:
    return FieldSet(
        name="sections",
        type=FieldSetType.COMPLEX_CHILD,
        table="SECTIONS",
        fields={
            "heading": Field("heading", "HEADING"),
            "text": Field("text", "TEXT"),
        },
    )


@pytest.fixture
def article_field_set(keywords_field_set: FieldSet, sections_field_set: FieldSet) -> FieldSet:
    return FieldSet(
        name="article",
        type=FieldSetType.PARENT,
        table="ARTICLE",
        fields={
            "title": Field("title", "TITLE"),
            "body": Field("body", "BODY", binary=True),
            "image": Field("image", "IMAGE", binary=True),
            "sys_workflow": Field("sys_workflow", "WORKFLOWID", system=True),
            "keywords": keywords_field_set,
            "sections": sections_field_set,
        },
    )


@pytest.fixture
def keywords_mapper() -> DisplayMapper:
    return DisplayMapper(id=3, field_set_ref="keywords", mappings=(DisplayMapping("keyword"),))


@pytest.fixture
def sections_mapper() -> DisplayMapper:
    return DisplayMapper(
        id=5,
        field_set_ref="sections",
        mappings=(DisplayMapping("heading"), DisplayMapping("text")),
    )


@pytest.fixture
def article_mapper(keywords_mapper: DisplayMapper, sections_mapper: DisplayMapper) -> DisplayMapper:
    return DisplayMapper(
        id="7",
        field_set_ref="article",
        mappings=(
            DisplayMapping("title"),
            DisplayMapping("body"),
            DisplayMapping("image"),
            DisplayMapping("keywords", child_mapper=keywords_mapper),
            DisplayMapping("sections", child_mapper=sections_mapper),
        ),
    )
