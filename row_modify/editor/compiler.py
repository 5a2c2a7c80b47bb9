"""Plan compiler.

Walks a display mapper tree and compiles one ModifyPlanSet per mapper.
Simple children never get a plan set of their own: their steps are merged
into the plans of the mapper that owns them. Complex children are compiled
recursively into plan sets of their own.
"""

from __future__ import annotations

import logging

from row_modify.core.config import EditorConfig
from row_modify.core.enums import FieldSetType
from row_modify.core.exceptions import PlanCompilationError
from row_modify.mapping.datasets import DatasetFactory
from row_modify.mapping.fieldset import DisplayMapper, FieldSet, FieldSetResolver, field_set_index
from row_modify.plan.builders import BuilderKind, build_plan
from row_modify.plan.plan import ModifyPlan
from row_modify.plan.plan_set import ModifyPlanSet

logger = logging.getLogger(__name__)


class PlanCompiler:
    """Compiles plan sets for a content editor's mapper tree."""

    def __init__(
        self,
        config: EditorConfig,
        dataset_factory: DatasetFactory,
        resolver: FieldSetResolver,
    ) -> None:
        self.config = config
        self.dataset_factory = dataset_factory
        self._resolver = resolver

    @classmethod
    def for_field_set(
        cls,
        config: EditorConfig,
        dataset_factory: DatasetFactory,
        root: FieldSet,
    ) -> PlanCompiler:
        """Compiler resolving field set references within *root*."""
        return cls(config, dataset_factory, field_set_index(root).__getitem__)

    def resolve(self, mapper: DisplayMapper) -> FieldSet:
        try:
            return self._resolver(mapper.field_set_ref)
        except KeyError:
            raise PlanCompilationError(
                f"Mapper {mapper.id} refers to unknown field set '{mapper.field_set_ref}'"
            ) from None

    def compile(self, root_mapper: DisplayMapper) -> dict[str, ModifyPlanSet]:
        """Compile and seal the plan sets of *root_mapper* and its complex children.

        Returns:
            Plan sets keyed by mapper id (string form).
        """
        if root_mapper is None:
            raise PlanCompilationError("root_mapper must not be None")
        field_set = self.resolve(root_mapper)
        if field_set.type is not FieldSetType.PARENT:
            raise PlanCompilationError(
                f"Root mapper {root_mapper.id} must map a parent field set"
            )
        plan_sets: dict[str, ModifyPlanSet] = {}
        self._compile_mapper(root_mapper, field_set, plan_sets)
        for plan_set in plan_sets.values():
            plan_set.seal()
        return plan_sets

    def _build(
        self,
        kind: BuilderKind,
        mapper: DisplayMapper,
        field_set: FieldSet,
        owner: FieldSet | None = None,
    ) -> ModifyPlan:
        return build_plan(
            kind,
            mapper,
            field_set,
            config=self.config,
            dataset_factory=self.dataset_factory,
            owner=owner,
        )

    def _compile_mapper(
        self,
        mapper: DisplayMapper,
        field_set: FieldSet,
        plan_sets: dict[str, ModifyPlanSet],
    ) -> None:
        is_parent = field_set.type is FieldSetType.PARENT
        update = self._build(BuilderKind.UPDATE, mapper, field_set)
        insert = self._build(
            BuilderKind.INSERT if is_parent else BuilderKind.CHILD_INSERT, mapper, field_set
        )

        for child_mapper in mapper.child_mappers():
            child = self.resolve(child_mapper)
            if child.type is FieldSetType.SIMPLE_CHILD:
                simple_insert = self._build(
                    BuilderKind.SIMPLE_CHILD_INSERT, child_mapper, child, field_set
                )
                insert.add_all_steps(simple_insert)
                # update replaces the child's values: delete all, insert submitted
                update.add_all_steps(
                    self._build(BuilderKind.SIMPLE_CHILD_DELETE, child_mapper, child, field_set)
                )
                update.add_all_steps(simple_insert)
            elif child.type is FieldSetType.COMPLEX_CHILD:
                self._compile_mapper(child_mapper, child, plan_sets)
            else:
                raise PlanCompilationError(
                    f"Field set '{child.name}' of type {child.type.value} cannot be a child"
                )

        plan_set = ModifyPlanSet()
        plan_set.add_plan(insert)
        plan_set.add_plan(update)
        plan_set.add_plan(
            self._build(
                BuilderKind.DELETE_ITEM if is_parent else BuilderKind.CHILD_DELETE,
                mapper,
                field_set,
            )
        )
        key = str(mapper.id)
        if key in plan_sets:
            raise PlanCompilationError(f"Duplicate mapper id {mapper.id}")
        plan_sets[key] = plan_set
        logger.info(
            "Registered %d plan(s) for mapper %s (%s)", len(plan_set), key, field_set.name
        )
