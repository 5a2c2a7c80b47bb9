"""Modify plan builders.

One builder per (field set shape, operation). A builder turns a display
mapper and its field set into a ModifyPlan, creating the backend datasets
the plan's steps dispatch to through a DatasetFactory. Builders hold no
per-plan state and can be reused.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

from row_modify.core.config import EditorConfig, SystemMappingConfig
from row_modify.core.enums import FieldSetType, PlanType
from row_modify.core.exceptions import PlanCompilationError
from row_modify.mapping.datasets import DatasetFactory
from row_modify.mapping.fieldset import DisplayMapper, Field, FieldSet
from row_modify.mapping.system import ColumnMapper, ColumnMapping, ParamSource, SystemMapping
from row_modify.plan.plan import ModifyPlan
from row_modify.plan.sequencing import SortRankStep
from row_modify.plan.step import ConditionalStep, ParamPresent, UpdateStep
from row_modify.plan.validation import RevisionValidationStep

logger = logging.getLogger(__name__)


class ModifyPlanBuilder(ABC):
    """Base class for all plan builders.

    Subclasses set ``plan_type``, ``operation`` (the resource name prefix)
    and ``shapes`` (the field set types they accept), and implement
    ``build``.
    """

    plan_type: PlanType
    operation: str
    shapes: frozenset[FieldSetType]

    def __init__(self, config: EditorConfig, dataset_factory: DatasetFactory) -> None:
        if config is None or dataset_factory is None:
            raise PlanCompilationError("config and dataset_factory are required")
        self.config = config
        self.dataset_factory = dataset_factory

    def create_modify_plan(
        self,
        mapper: DisplayMapper,
        field_set: FieldSet,
        *,
        owner: FieldSet | None = None,
    ) -> ModifyPlan:
        """Compile the plan for *mapper* over *field_set*.

        *owner* is the field set a simple child is nested in. Rows of a
        simple child owned by a complex child are keyed by the owning row.

        Raises:
            PlanCompilationError: If either input is None, the field set
                has a shape this builder does not handle, or *owner* is
                itself a simple child.
        """
        if mapper is None:
            raise PlanCompilationError("mapper must not be None")
        if field_set is None:
            raise PlanCompilationError("field_set must not be None")
        if field_set.type not in self.shapes:
            raise PlanCompilationError(
                f"{type(self).__name__} cannot build a plan for a "
                f"{field_set.type.value} field set ('{field_set.name}')"
            )
        if owner is not None and owner.type is FieldSetType.SIMPLE_CHILD:
            raise PlanCompilationError(
                f"Field set '{field_set.name}' cannot be nested in simple child '{owner.name}'"
            )
        plan = ModifyPlan(self.plan_type)
        self.build(plan, mapper, field_set, owner)
        logger.debug(
            "Compiled %s plan for mapper %s: %d step(s)",
            self.plan_type.name,
            mapper.id,
            len(plan),
        )
        return plan

    @abstractmethod
    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        """Add this builder's steps to *plan*."""

    # -- naming ---------------------------------------------------------

    def resource_name(self, mapper: DisplayMapper, suffix: str = "") -> str:
        return f"{self.operation}{mapper.id}{suffix}"

    def get_mapper_table(self, field_set: FieldSet) -> str:
        if not field_set.table:
            raise PlanCompilationError(f"Field set '{field_set.name}' has no table")
        return field_set.table

    @staticmethod
    def allow_multiple_inserts(field_set: FieldSet) -> bool:
        """Multi-row insert is only possible without nested simple children."""
        return not field_set.has_simple_child()

    # -- column mapping -------------------------------------------------

    def data_column_mapper(
        self,
        mapper: DisplayMapper,
        field_set: FieldSet,
        *,
        include_binary: bool = True,
    ) -> ColumnMapper:
        """Columns for the data fields the mapper submits."""
        table = self.get_mapper_table(field_set)
        columns = ColumnMapper()
        for ref in mapper.field_refs():
            item = field_set.get(ref)
            if not isinstance(item, Field):
                logger.debug("Mapper %s: '%s' is not a field of %s", mapper.id, ref, table)
                continue
            if item.system or (item.binary and not include_binary):
                continue
            columns.add(ColumnMapping(table, item.column, ParamSource(item.name)))
        return columns

    def mapped_binary_fields(self, mapper: DisplayMapper, field_set: FieldSet) -> list[Field]:
        refs = set(mapper.field_refs())
        return [f for f in field_set.binary_fields() if f.name in refs]

    @staticmethod
    def system_mappings(configs: list[SystemMappingConfig]) -> list[SystemMapping]:
        return [SystemMapping.from_config(c) for c in configs]

    def _item_keys(self, table: str) -> list[ColumnMapping]:
        cfg = self.config
        return [
            ColumnMapping(table, cfg.content_id_column, ParamSource(cfg.content_id_param)),
            ColumnMapping(table, cfg.revision_column, ParamSource(cfg.revision_param)),
        ]

    def _key_columns(
        self, field_set: FieldSet, table: str, owner: FieldSet | None = None
    ) -> list[ColumnMapping]:
        cfg = self.config
        keys = self._item_keys(table)
        # complex child rows, and simple child rows inside one, carry the complex row id
        owned = owner is not None and owner.type is FieldSetType.COMPLEX_CHILD
        if field_set.type is FieldSetType.COMPLEX_CHILD or owned:
            keys.append(
                ColumnMapping(table, cfg.child_row_id_column, ParamSource(cfg.child_row_id_param))
            )
        return keys

    def add_table_keys(
        self, columns: ColumnMapper, field_set: FieldSet, owner: FieldSet | None = None
    ) -> ColumnMapper:
        """Mark the row key of *field_set*'s table as filter columns."""
        table = self.get_mapper_table(field_set)
        for mapping in self._key_columns(field_set, table, owner):
            columns.add(ColumnMapping(mapping.table, mapping.column, mapping.source, key=True))
        return columns

    def add_key_generation(
        self, columns: ColumnMapper, field_set: FieldSet, owner: FieldSet | None = None
    ) -> ColumnMapper:
        """Write the row key columns whose values are generated before insert.

        Sequenced complex children also get their sort rank column.
        """
        cfg = self.config
        table = self.get_mapper_table(field_set)
        for mapping in self._key_columns(field_set, table, owner):
            columns.add(mapping)
        if field_set.type is FieldSetType.COMPLEX_CHILD and field_set.sequencing_supported:
            columns.add(
                ColumnMapping(table, cfg.sort_rank_column, ParamSource(cfg.sort_rank_param))
            )
        return columns

    def add_system_key(self, columns: ColumnMapper) -> ColumnMapper:
        cfg = self.config
        return columns.add(
            ColumnMapping(
                cfg.system_table,
                cfg.system_content_id_column,
                ParamSource(cfg.content_id_param),
                key=True,
            )
        )

    # -- shared steps ---------------------------------------------------

    def update_step(
        self,
        name: str,
        action_value: str,
        *,
        allow_multiple: bool = False,
        control_param: str | None = None,
    ) -> UpdateStep:
        return UpdateStep(
            name,
            self.config.action_param,
            action_value,
            allow_multiple=allow_multiple,
            control_param=control_param,
            payload_param=self.config.xml_doc_flag_param,
        )

    def add_revision_validation(self, plan: ModifyPlan, mapper: DisplayMapper) -> None:
        cfg = self.config
        name = self.dataset_factory.create_revision_query(
            self.resource_name(mapper, "Revision"),
            cfg.system_table,
            cfg.system_content_id_column,
            cfg.current_revision_column,
            cfg.content_id_param,
        )
        plan.add_step(RevisionValidationStep(name, cfg.revision_param))

    def add_sys_update(self, plan: ModifyPlan, mapper: DisplayMapper) -> None:
        """Touch the owning item's system columns after a child change."""
        columns = ColumnMapper()
        for mapping in self.system_mappings(self.config.update_mappings()):
            columns.add_system(mapping)
        self.add_system_key(columns)
        name = self.dataset_factory.create_modify_dataset(
            self.resource_name(mapper, "SysUpdate"), columns
        )
        plan.add_step(self.update_step(name, self.config.action_update))


class InsertPlanBuilder(ModifyPlanBuilder):
    """Inserts a new item: system row plus the parent content row."""

    plan_type = PlanType.INSERT_PLAN
    operation = "Insert"
    shapes = frozenset({FieldSetType.PARENT})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        columns = ColumnMapper()
        for mapping in self.system_mappings(self.config.insert_mappings()):
            columns.add_system(mapping)
        self.add_key_generation(columns, field_set)
        columns.extend(self.data_column_mapper(mapper, field_set))
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        plan.add_step(self.update_step(name, self.config.action_insert))
        for binary in field_set.binary_fields():
            plan.add_binary_field(binary.name)


class UpdatePlanBuilder(ModifyPlanBuilder):
    """Updates the submitted fields of a parent or complex child row.

    Binary fields are updated by their own conditional steps, so an
    unchanged binary value need not be resubmitted.
    """

    plan_type = PlanType.UPDATE_PLAN
    operation = "Update"
    shapes = frozenset({FieldSetType.PARENT, FieldSetType.COMPLEX_CHILD})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        cfg = self.config
        self.add_revision_validation(plan, mapper)

        columns = ColumnMapper()
        is_parent = field_set.type is FieldSetType.PARENT
        if is_parent:
            for mapping in self.system_mappings(cfg.update_mappings()):
                columns.add_system(mapping)
            self.add_system_key(columns)
        columns.extend(self.data_column_mapper(mapper, field_set, include_binary=False))
        self.add_table_keys(columns, field_set)
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        plan.add_step(self.update_step(name, cfg.action_update))

        table = self.get_mapper_table(field_set)
        for binary in self.mapped_binary_fields(mapper, field_set):
            binary_columns = ColumnMapper().add(
                ColumnMapping(table, binary.column, ParamSource(binary.name))
            )
            self.add_table_keys(binary_columns, field_set)
            binary_name = self.dataset_factory.create_modify_dataset(
                self.resource_name(mapper, f"Binary{binary.name}"), binary_columns
            )
            conditions = (ParamPresent(binary.name),)
            plan.add_step(
                ConditionalStep(self.update_step(binary_name, cfg.action_update), conditions)
            )
            plan.add_binary_field(binary.name, conditions)

        if not is_parent:
            self.add_sys_update(plan, mapper)


class DeletePlanBuilder(ModifyPlanBuilder):
    """Deletes a whole item: system row, content rows and every child row."""

    plan_type = PlanType.DELETE_ITEM
    operation = "DeleteItem"
    shapes = frozenset(FieldSetType)

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        cfg = self.config
        self.add_revision_validation(plan, mapper)

        columns = ColumnMapper()
        for mapping in self.system_mappings(cfg.delete_mappings()):
            columns.add_system(mapping, key=True)
        for table in self.item_tables(field_set):
            columns.add(
                ColumnMapping(
                    table, cfg.content_id_column, ParamSource(cfg.content_id_param), key=True
                )
            )
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        plan.add_step(self.update_step(name, cfg.action_delete))

    def item_tables(self, field_set: FieldSet) -> list[str]:
        """*field_set*'s table followed by every nested child table."""
        tables = [self.get_mapper_table(field_set)]
        for child in field_set.child_field_sets():
            for table in self.item_tables(child):
                if table not in tables:
                    tables.append(table)
        return tables


class SimpleChildInsertPlanBuilder(ModifyPlanBuilder):
    """Inserts one row per submitted value of a simple child."""

    plan_type = PlanType.INSERT_PLAN
    operation = "SimpleInsert"
    shapes = frozenset({FieldSetType.SIMPLE_CHILD})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        primary = field_set.primary_field()
        if primary is None:
            raise PlanCompilationError(f"Simple child '{field_set.name}' has no value field")
        columns = self.add_key_generation(ColumnMapper(), field_set, owner)
        table = self.get_mapper_table(field_set)
        columns.add(ColumnMapping(table, primary.column, ParamSource(primary.name)))
        columns.extend(self.data_column_mapper(mapper, field_set))
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        step = self.update_step(
            name,
            self.config.action_insert,
            allow_multiple=True,
            control_param=primary.name,
        )
        plan.add_step(ConditionalStep(step, [ParamPresent(primary.name)]))


class SimpleChildDeletePlanBuilder(ModifyPlanBuilder):
    """Removes every row of a simple child before it is re-inserted."""

    plan_type = PlanType.UPDATE_PLAN
    operation = "SimpleDelete"
    shapes = frozenset({FieldSetType.SIMPLE_CHILD})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        columns = self.add_table_keys(ColumnMapper(), field_set, owner)
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        plan.add_step(self.update_step(name, self.config.action_delete))


class ChildInsertPlanBuilder(ModifyPlanBuilder):
    """Inserts complex child rows, then touches the owning item."""

    plan_type = PlanType.INSERT_PLAN
    operation = "Insert"
    shapes = frozenset({FieldSetType.COMPLEX_CHILD})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        cfg = self.config
        self.add_revision_validation(plan, mapper)
        if field_set.sequencing_supported:
            self.add_sort_rank(plan, mapper, field_set)

        columns = self.add_key_generation(ColumnMapper(), field_set)
        columns.extend(self.data_column_mapper(mapper, field_set))
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        allow = self.allow_multiple_inserts(field_set)
        plan.add_step(
            self.update_step(
                name,
                cfg.action_insert,
                allow_multiple=allow,
                control_param=cfg.child_row_id_param if allow else None,
            )
        )
        for binary in field_set.binary_fields():
            plan.add_binary_field(binary.name)
        self.add_sys_update(plan, mapper)

    def add_sort_rank(self, plan: ModifyPlan, mapper: DisplayMapper, field_set: FieldSet) -> None:
        cfg = self.config
        table = self.get_mapper_table(field_set)
        name = self.dataset_factory.create_sort_rank_query(
            self.resource_name(mapper, "SortRank"),
            table,
            cfg.sort_rank_column,
            self._item_keys(table),
        )
        plan.add_step(SortRankStep(name, cfg.sort_rank_param, cfg.child_row_id_param))


class ChildDeletePlanBuilder(ModifyPlanBuilder):
    """Deletes one complex child row, then touches the owning item.

    Rows of simple children nested in the complex child go with it.
    """

    plan_type = PlanType.DELETE_COMPLEX_CHILD
    operation = "Delete"
    shapes = frozenset({FieldSetType.COMPLEX_CHILD})

    def build(
        self,
        plan: ModifyPlan,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None,
    ) -> None:
        self.add_revision_validation(plan, mapper)
        columns = self.add_table_keys(ColumnMapper(), field_set)
        for child in field_set.child_field_sets():
            if child.type is FieldSetType.SIMPLE_CHILD:
                self.add_table_keys(columns, child, owner=field_set)
        name = self.dataset_factory.create_modify_dataset(self.resource_name(mapper), columns)
        plan.add_step(self.update_step(name, self.config.action_delete))
        self.add_sys_update(plan, mapper)


class BuilderKind(Enum):
    """Field set shape x operation."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE_ITEM = "delete_item"
    SIMPLE_CHILD_INSERT = "simple_child_insert"
    SIMPLE_CHILD_DELETE = "simple_child_delete"
    CHILD_INSERT = "child_insert"
    CHILD_DELETE = "child_delete"


_BUILDERS: dict[BuilderKind, type[ModifyPlanBuilder]] = {
    BuilderKind.INSERT: InsertPlanBuilder,
    BuilderKind.UPDATE: UpdatePlanBuilder,
    BuilderKind.DELETE_ITEM: DeletePlanBuilder,
    BuilderKind.SIMPLE_CHILD_INSERT: SimpleChildInsertPlanBuilder,
    BuilderKind.SIMPLE_CHILD_DELETE: SimpleChildDeletePlanBuilder,
    BuilderKind.CHILD_INSERT: ChildInsertPlanBuilder,
    BuilderKind.CHILD_DELETE: ChildDeletePlanBuilder,
}


def get_builder(
    kind: BuilderKind, config: EditorConfig, dataset_factory: DatasetFactory
) -> ModifyPlanBuilder:
    return _BUILDERS[kind](config, dataset_factory)


def build_plan(
    kind: BuilderKind,
    mapper: DisplayMapper,
    field_set: FieldSet,
    *,
    config: EditorConfig,
    dataset_factory: DatasetFactory,
    owner: FieldSet | None = None,
) -> ModifyPlan:
    """Compile one plan with the builder registered for *kind*."""
    builder = get_builder(kind, config, dataset_factory)
    return builder.create_modify_plan(mapper, field_set, owner=owner)
