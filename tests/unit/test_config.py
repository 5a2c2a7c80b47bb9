"""Unit tests for EditorConfig and load_config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from row_modify.core.config import EditorConfig, SystemMappingConfig, load_config
from row_modify.core.enums import DbAction
from row_modify.core.exceptions import ConfigError


class TestEditorConfig:
    def test_defaults(self) -> None:
        config = EditorConfig()
        assert config.content_id_param == "sys_contentid"
        assert config.action_param == "DBActionType"
        assert config.system_table == "CONTENTSTATUS"
        assert config.sort_rank_param == "sys_sortrank"
        assert config.sort_rank_column == "SORTRANK"

    def test_action_value_round_trip(self) -> None:
        config = EditorConfig(action_delete="DEL")
        assert config.action_value(DbAction.DELETE) == "DEL"
        assert config.action_for("DEL") is DbAction.DELETE
        assert config.action_for("DELETE") is None

    def test_default_insert_mappings(self) -> None:
        mappings = EditorConfig().insert_mappings()
        assert [(m.table, m.column) for m in mappings] == [
            ("CONTENTSTATUS", "CONTENTID"),
            ("CONTENTSTATUS", "EDITREVISION"),
            ("CONTENTSTATUS", "LASTMODIFIER"),
            ("CONTENTSTATUS", "LASTMODIFIEDDATE"),
        ]
        assert mappings[0].source == "param"
        assert mappings[0].value == "sys_contentid"
        assert mappings[2].source == "context"

    def test_defaults_follow_system_table(self) -> None:
        config = EditorConfig(system_table="ITEMS")
        assert {m.table for m in config.update_mappings()} == {"ITEMS"}
        assert [m.column for m in config.delete_mappings()] == ["CONTENTID"]

    def test_explicit_mappings_replace_defaults(self) -> None:
        config = EditorConfig(
            system_update_mappings=[
                SystemMappingConfig(table="T", column="C", source="literal", value=1)
            ]
        )
        assert [(m.table, m.column) for m in config.update_mappings()] == [("T", "C")]

    def test_empty_mapping_list_is_kept(self) -> None:
        assert EditorConfig(system_update_mappings=[]).update_mappings() == []


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "editor.json"
        path.write_text(json.dumps({"system_table": "ITEMS", "action_insert": "I"}))
        config = load_config(path)
        assert config.system_table == "ITEMS"
        assert config.action_insert == "I"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "editor.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid editor config"):
            load_config(path)

    def test_invalid_field_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "editor.json"
        path.write_text(json.dumps({"system_insert_mappings": [{"table": "T"}]}))
        with pytest.raises(ConfigError):
            load_config(path)
