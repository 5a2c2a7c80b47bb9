"""Unit tests for SqlDatasetFactory and column mapping."""

from __future__ import annotations

import pytest

from row_modify.core.config import SystemMappingConfig
from row_modify.core.enums import DbAction
from row_modify.core.exceptions import DuplicateDatasetError, PlanCompilationError
from row_modify.core.registry import DatasetRegistry
from row_modify.mapping.datasets import SqlDatasetFactory
from row_modify.mapping.system import (
    ColumnMapper,
    ColumnMapping,
    ContextSource,
    LiteralSource,
    ParamSource,
    SystemMapping,
)


@pytest.fixture
def factory() -> SqlDatasetFactory:
    return SqlDatasetFactory(DatasetRegistry())


def _article_mapper() -> ColumnMapper:
    mapper = ColumnMapper()
    mapper.add(ColumnMapping("STATUS", "LASTMODIFIER", ContextSource("user")))
    mapper.add(ColumnMapping("STATUS", "CONTENTID", ParamSource("sys_contentid"), key=True))
    mapper.add(ColumnMapping("ARTICLE", "TITLE", ParamSource("title")))
    mapper.add(ColumnMapping("ARTICLE", "CONTENTID", ParamSource("sys_contentid"), key=True))
    return mapper


class TestValueSources:
    def test_param_source(self) -> None:
        assert ParamSource("a").resolve({"a": 1}, {}) == 1

    def test_literal_source(self) -> None:
        assert LiteralSource("x").resolve({}, {}) == "x"

    def test_context_source(self) -> None:
        assert ContextSource("user").resolve({}, {"user": "bob"}) == "bob"

    def test_system_mapping_from_config(self) -> None:
        mapping = SystemMapping.from_config(
            SystemMappingConfig(table="T", column="C", source="context", value="now")
        )
        assert mapping == SystemMapping("T", "C", ContextSource("now"))


class TestColumnMapper:
    def test_tables_keep_first_seen_order(self) -> None:
        assert _article_mapper().tables() == ["STATUS", "ARTICLE"]

    def test_duplicate_column_keeps_first_source(self) -> None:
        mapper = ColumnMapper()
        mapper.add(ColumnMapping("T", "C", ParamSource("a")))
        mapper.add(ColumnMapping("T", "C", ParamSource("b")))
        assert len(mapper) == 1
        assert mapper.columns("T")[0].source == ParamSource("a")

    def test_key_upgrade(self) -> None:
        mapper = ColumnMapper()
        mapper.add(ColumnMapping("T", "C", ParamSource("a")))
        mapper.add(ColumnMapping("T", "C", ParamSource("a"), key=True))
        assert [m.column for m in mapper.key_columns("T")] == ["C"]
        assert mapper.value_columns("T") == []


class TestSqlDatasetFactory:
    def test_insert_statements(self, factory: SqlDatasetFactory) -> None:
        name = factory.create_modify_dataset("Insert7", _article_mapper())
        inserts = factory.registry.get(name).statements_for(DbAction.INSERT)
        assert [s.sql for s in inserts] == [
            "INSERT INTO STATUS (LASTMODIFIER, CONTENTID) VALUES (:p_lastmodifier, :p_contentid)",
            "INSERT INTO ARTICLE (TITLE, CONTENTID) VALUES (:p_title, :p_contentid)",
        ]

    def test_update_sets_values_filtered_by_keys(self, factory: SqlDatasetFactory) -> None:
        factory.create_modify_dataset("Update7", _article_mapper())
        updates = factory.registry.get("Update7").statements_for(DbAction.UPDATE)
        assert updates[1].sql == (
            "UPDATE ARTICLE SET TITLE = :p_title WHERE CONTENTID = :p_contentid"
        )
        assert [b.name for b in updates[1].bindings] == ["p_title", "p_contentid"]

    def test_delete_runs_in_reverse_table_order(self, factory: SqlDatasetFactory) -> None:
        factory.create_modify_dataset("DeleteItem7", _article_mapper())
        deletes = factory.registry.get("DeleteItem7").statements_for(DbAction.DELETE)
        assert [s.sql for s in deletes] == [
            "DELETE FROM ARTICLE WHERE CONTENTID = :p_contentid",
            "DELETE FROM STATUS WHERE CONTENTID = :p_contentid",
        ]

    def test_statement_resolves_bindings(self, factory: SqlDatasetFactory) -> None:
        factory.create_modify_dataset("Insert7", _article_mapper())
        statement = factory.registry.get("Insert7").statements_for(DbAction.INSERT)[0]
        values = statement.resolve({"sys_contentid": 4}, {"user": "bob"})
        assert values == {"p_lastmodifier": "bob", "p_contentid": 4}

    def test_table_without_keys_has_no_update_or_delete(self, factory: SqlDatasetFactory) -> None:
        mapper = ColumnMapper().add(ColumnMapping("LOG", "MSG", LiteralSource("x")))
        factory.create_modify_dataset("Insert1", mapper)
        dataset = factory.registry.get("Insert1")
        assert dataset.statements_for(DbAction.UPDATE) == ()
        assert dataset.statements_for(DbAction.DELETE) == ()

    def test_empty_mapper_raises(self, factory: SqlDatasetFactory) -> None:
        with pytest.raises(PlanCompilationError, match="maps no columns"):
            factory.create_modify_dataset("Insert1", ColumnMapper())

    def test_invalid_identifier_raises(self, factory: SqlDatasetFactory) -> None:
        mapper = ColumnMapper().add(ColumnMapping("T; DROP", "C", LiteralSource(1)))
        with pytest.raises(PlanCompilationError, match="Invalid SQL identifier"):
            factory.create_modify_dataset("Insert1", mapper)

    def test_duplicate_name_raises(self, factory: SqlDatasetFactory) -> None:
        factory.create_modify_dataset("Insert7", _article_mapper())
        with pytest.raises(DuplicateDatasetError):
            factory.create_modify_dataset("Insert7", _article_mapper())

    def test_revision_query(self, factory: SqlDatasetFactory) -> None:
        name = factory.create_revision_query(
            "Update7Revision", "CONTENTSTATUS", "CONTENTID", "EDITREVISION", "sys_contentid"
        )
        query = factory.registry.get(name).query
        assert query is not None
        assert query.sql == "SELECT EDITREVISION FROM CONTENTSTATUS WHERE CONTENTID = :p_key"
        assert query.resolve({"sys_contentid": 9}, {}) == {"p_key": 9}

    def test_sort_rank_query(self, factory: SqlDatasetFactory) -> None:
        keys = [
            ColumnMapping("SECTIONS", "CONTENTID", ParamSource("sys_contentid")),
            ColumnMapping("SECTIONS", "REVISIONID", ParamSource("sys_revision")),
        ]
        name = factory.create_sort_rank_query("Insert5SortRank", "SECTIONS", "SORTRANK", keys)
        query = factory.registry.get(name).query
        assert query is not None
        assert query.sql == (
            "SELECT SORTRANK FROM SECTIONS WHERE CONTENTID = :p_contentid "
            "AND REVISIONID = :p_revisionid ORDER BY SORTRANK"
        )
        assert query.resolve({"sys_contentid": 4, "sys_revision": 1}, {}) == {
            "p_contentid": 4,
            "p_revisionid": 1,
        }

    def test_sort_rank_query_needs_keys(self, factory: SqlDatasetFactory) -> None:
        with pytest.raises(PlanCompilationError, match="no selection keys"):
            factory.create_sort_rank_query("Insert5SortRank", "SECTIONS", "SORTRANK", [])
