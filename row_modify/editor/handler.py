"""Modify command handler.

Entry point for content editor modify requests: selects the mapper and
plan for the request, generates keys for inserts, runs the plan in one
transaction and notifies change listeners.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from row_modify.core.config import EditorConfig
from row_modify.core.context import ExecutionContext
from row_modify.core.dispatcher import Dispatcher
from row_modify.core.enums import DbAction, FieldSetType, PlanType
from row_modify.core.exceptions import RequestValidationError
from row_modify.core.params import is_only_multi_value_param, max_list_size
from row_modify.editor.compiler import PlanCompiler
from row_modify.editor.keys import InMemoryKeyGenerator, KeyGenerator
from row_modify.mapping.datasets import SqlDatasetFactory
from row_modify.mapping.fieldset import DisplayMapper, FieldSet, field_set_index
from row_modify.plan.builders import ModifyPlanBuilder
from row_modify.plan.events import EditorChangeEvent, change_action, modified_binary_fields
from row_modify.plan.plan_set import ModifyPlanSet

logger = logging.getLogger(__name__)

ChangeListener = Callable[[EditorChangeEvent], None]

CONTENT_ID_KEY = "CONTENT"


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _is_blank(value: Any) -> bool:
    value = _first(value)
    return value is None or value == ""


@dataclass(frozen=True)
class ModifyResult:
    """Outcome of one processed modify request."""

    plan_type: PlanType
    steps_executed: int
    params: dict[str, Any]
    event: EditorChangeEvent


class ModifyCommandHandler:
    """Processes modify requests against compiled plan sets."""

    def __init__(
        self,
        root_mapper: DisplayMapper,
        root_field_set: FieldSet,
        plan_sets: dict[str, ModifyPlanSet],
        dispatcher: Dispatcher,
        config: EditorConfig | None = None,
        key_generator: KeyGenerator | None = None,
    ) -> None:
        self.root_mapper = root_mapper
        self.root_field_set = root_field_set
        self.plan_sets = plan_sets
        self.dispatcher = dispatcher
        self.config = config or EditorConfig()
        self.key_generator = key_generator or InMemoryKeyGenerator()
        self._field_sets = field_set_index(root_field_set)
        self._listeners: list[ChangeListener] = []

    @classmethod
    def create(
        cls,
        root_mapper: DisplayMapper,
        root_field_set: FieldSet,
        dispatcher: Dispatcher,
        config: EditorConfig | None = None,
        key_generator: KeyGenerator | None = None,
    ) -> ModifyCommandHandler:
        """Compile the plan sets for *root_mapper* and build a handler.

        Datasets are registered into the dispatcher's registry.
        """
        config = config or EditorConfig()
        compiler = PlanCompiler.for_field_set(
            config, SqlDatasetFactory(dispatcher.registry), root_field_set
        )
        plan_sets = compiler.compile(root_mapper)
        return cls(root_mapper, root_field_set, plan_sets, dispatcher, config, key_generator)

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def resolve_mapper(self, params: dict[str, Any]) -> DisplayMapper:
        """The mapper named by the child id parameter, or the root mapper."""
        param = self.config.child_id_param
        child_id = _first(params.get(param))
        if _is_blank(child_id):
            return self.root_mapper
        mapper = self.root_mapper.find(child_id)
        if mapper is None:
            raise RequestValidationError(param, child_id, "unknown child")
        return mapper

    def resolve_plan_type(self, params: dict[str, Any], is_parent: bool) -> PlanType:
        param = self.config.action_param
        value = _first(params.get(param))
        action = self.config.action_for(value)
        if action is DbAction.INSERT:
            return PlanType.INSERT_PLAN
        if action is DbAction.UPDATE:
            return PlanType.UPDATE_PLAN
        if action is DbAction.DELETE:
            return PlanType.DELETE_ITEM if is_parent else PlanType.DELETE_COMPLEX_CHILD
        raise RequestValidationError(param, value, "unknown action")

    def prepare(
        self,
        plan_type: PlanType,
        params: dict[str, Any],
        field_set: FieldSet,
        is_parent: bool,
    ) -> dict[str, Any]:
        """Validate key parameters and generate keys for inserts.

        Updates and returns *params*.
        """
        cfg = self.config
        if plan_type is PlanType.INSERT_PLAN and is_parent:
            params[cfg.content_id_param] = self.key_generator.next_id(CONTENT_ID_KEY)
            params[cfg.revision_param] = 1
            return params

        for name in (cfg.content_id_param, cfg.revision_param):
            if _is_blank(params.get(name)):
                raise RequestValidationError(name, params.get(name), "parameter is required")

        if is_parent:
            return params

        if plan_type is PlanType.INSERT_PLAN:
            if _is_blank(params.get(cfg.child_row_id_param)):
                params[cfg.child_row_id_param] = self._child_row_ids(params, field_set)
        elif _is_blank(params.get(cfg.child_row_id_param)):
            raise RequestValidationError(
                cfg.child_row_id_param, params.get(cfg.child_row_id_param), "parameter is required"
            )
        return params

    def _child_row_ids(self, params: dict[str, Any], field_set: FieldSet) -> int | list[int]:
        multi = (
            ModifyPlanBuilder.allow_multiple_inserts(field_set)
            and max_list_size(params) > 1
            and not is_only_multi_value_param(params, self.config.xml_doc_flag_param)
        )
        if not multi:
            return self.key_generator.next_id(field_set.table)
        return self.key_generator.next_id_block(field_set.table, max_list_size(params))

    def process(self, params: dict[str, Any], user: str | None = None) -> ModifyResult:
        """Run the plan the request selects, all steps or none.

        Raises:
            RequestValidationError: If the request names an unknown child,
                action or unsupported operation, or lacks key parameters.
        """
        params = dict(params)
        mapper = self.resolve_mapper(params)
        field_set = self._field_sets[mapper.field_set_ref]
        is_parent = field_set.type is FieldSetType.PARENT
        plan_type = self.resolve_plan_type(params, is_parent)

        plan_set = self.plan_sets.get(str(mapper.id))
        plan = plan_set.get_plan(plan_type) if plan_set is not None else None
        if plan is None:
            raise RequestValidationError(
                self.config.action_param,
                params.get(self.config.action_param),
                f"operation not supported for mapper {mapper.id}",
            )

        self.prepare(plan_type, params, field_set, is_parent)
        with self.dispatcher.transaction() as tx:
            context = ExecutionContext(params, tx, self.config, user=user)
            executed = plan.execute(context)

        cfg = self.config
        event = EditorChangeEvent(
            action=change_action(plan_type),
            content_id=_first(params.get(cfg.content_id_param)),
            revision=_first(params.get(cfg.revision_param)),
            child_id=None if is_parent else mapper.id,
            child_row_id=None if is_parent else params.get(cfg.child_row_id_param),
            binary_fields=modified_binary_fields(plan, context),
        )
        logger.info(
            "Processed %s on mapper %s: %d step(s) dispatched",
            plan_type.name,
            mapper.id,
            executed,
        )
        for listener in self._listeners:
            listener(event)
        return ModifyResult(plan_type, executed, params, event)
