"""Editor configuration.

EditorConfig is a Pydantic model naming every request parameter and system
column the plan engine touches. Defaults follow the content editor's
conventions, so most callers only override table names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from row_modify.core.enums import DbAction
from row_modify.core.exceptions import ConfigError


class SystemMappingConfig(BaseModel):
    """One handler-wide system column populated on insert, update or delete."""

    table: str
    column: str
    source: Literal["param", "literal", "context"] = "param"
    value: Any = None


class EditorConfig(BaseModel):
    """Request parameter names and system column layout."""

    # request parameters
    content_id_param: str = "sys_contentid"
    revision_param: str = "sys_revision"
    child_id_param: str = "sys_childid"
    child_row_id_param: str = "sys_childrowid"
    action_param: str = "DBActionType"
    action_insert: str = "INSERT"
    action_update: str = "UPDATE"
    action_delete: str = "DELETE"
    xml_doc_flag_param: str = "psxmldoc"
    sort_rank_param: str = "sys_sortrank"

    # system table
    system_table: str = "CONTENTSTATUS"
    system_content_id_column: str = "CONTENTID"
    current_revision_column: str = "EDITREVISION"
    last_modifier_column: str = "LASTMODIFIER"
    last_modified_date_column: str = "LASTMODIFIEDDATE"

    # content and child table keys
    content_id_column: str = "CONTENTID"
    revision_column: str = "REVISIONID"
    child_row_id_column: str = "SYSID"
    sort_rank_column: str = "SORTRANK"

    # None selects the defaults built from the system table settings above
    system_insert_mappings: list[SystemMappingConfig] | None = None
    system_update_mappings: list[SystemMappingConfig] | None = None
    system_delete_mappings: list[SystemMappingConfig] | None = None

    def insert_mappings(self) -> list[SystemMappingConfig]:
        if self.system_insert_mappings is not None:
            return list(self.system_insert_mappings)
        return [
            self._system("param", self.system_content_id_column, self.content_id_param),
            self._system("param", self.current_revision_column, self.revision_param),
            *self._last_modified(),
        ]

    def update_mappings(self) -> list[SystemMappingConfig]:
        if self.system_update_mappings is not None:
            return list(self.system_update_mappings)
        return self._last_modified()

    def delete_mappings(self) -> list[SystemMappingConfig]:
        if self.system_delete_mappings is not None:
            return list(self.system_delete_mappings)
        return [self._system("param", self.system_content_id_column, self.content_id_param)]

    def _system(self, source: str, column: str, value: Any) -> SystemMappingConfig:
        return SystemMappingConfig(
            table=self.system_table, column=column, source=source, value=value
        )

    def _last_modified(self) -> list[SystemMappingConfig]:
        return [
            self._system("context", self.last_modifier_column, "user"),
            self._system("context", self.last_modified_date_column, "now"),
        ]

    def action_value(self, action: DbAction) -> str:
        """Discriminator value that selects *action* on the backend."""
        return {
            DbAction.INSERT: self.action_insert,
            DbAction.UPDATE: self.action_update,
            DbAction.DELETE: self.action_delete,
        }[action]

    def action_for(self, value: Any) -> DbAction | None:
        """Map a discriminator value back to its action, or None if unknown."""
        for action in DbAction:
            if value == self.action_value(action):
                return action
        return None


def load_config(path: Path | str) -> EditorConfig:
    """Load an EditorConfig from a JSON file.

    Raises:
        ConfigError: If the file is missing, not JSON, or fails validation.
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read editor config '{config_path}': {e}") from e
    try:
        return EditorConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid editor config '{config_path}': {e}") from e
